'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-01 09:10:00
 #  Modified time: 2025-11-06 09:40:00
 #  Description: Training engine driving a network through the grid detection layer.
 #  Description (Legacy): Provides configuration utilities, training orchestration,
 #       checkpoint management, and metric logging for experiments.
'''

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import torch
from torch import nn
from torch.nn.utils import clip_grad_norm_
from torch.utils.data import DataLoader
from torch.utils.tensorboard import SummaryWriter

from models import DetectionBundle, create_detection_layer
from utils.utils import ensure_dir, write_json

LOGGER = logging.getLogger("gai_griddet.train")


@dataclass(frozen=True)
class TrainerConfig:
    """Normalized configuration for the training loop."""

    num_epochs: int = 1
    learning_rate: float = 1e-3
    weight_decay: float = 0.0
    device: str = "auto"
    gradient_clip_norm: Optional[float] = None
    log_interval: int = 10
    checkpoint_interval: int = 5
    optimizer: str = "adamw"
    scheduler: Optional[str] = None
    scheduler_params: Dict[str, Any] = field(default_factory=dict)
    artifact_dir: Path = Path("./experiments/default/")
    enable_tensorboard: bool = True
    tensorboard_log_interval: int = 10
    max_batches_per_epoch: Optional[int] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "TrainerConfig":
        experiment_cfg = config.get("experiment", {})

        experiment_name = experiment_cfg.get("name", "default-experiment")
        safe_name = experiment_name.lower().replace(" ", "-").replace("_", "-")
        if "artifact_dir" in experiment_cfg:
            artifact_dir = Path(experiment_cfg["artifact_dir"]).expanduser()
        else:
            artifact_dir = Path(f"./experiments/{safe_name}/").expanduser()

        gradient_clip = experiment_cfg.get("gradient_clip_norm")
        log_interval = int(experiment_cfg.get("log_interval", 10))
        tensorboard_cfg = experiment_cfg.get("tensorboard", {})
        max_batches = experiment_cfg.get("max_batches_per_epoch")

        return cls(
            num_epochs=int(experiment_cfg.get("num_epochs", 1)),
            learning_rate=float(experiment_cfg.get("learning_rate", 1e-3)),
            weight_decay=float(experiment_cfg.get("weight_decay", 0.0)),
            device=str(experiment_cfg.get("device", "auto")),
            gradient_clip_norm=float(gradient_clip) if gradient_clip is not None else None,
            log_interval=max(1, log_interval),
            checkpoint_interval=max(1, int(experiment_cfg.get("checkpoint_interval", 5))),
            optimizer=str(experiment_cfg.get("optimizer", "adamw")),
            scheduler=experiment_cfg.get("scheduler"),
            scheduler_params=dict(experiment_cfg.get("scheduler_params", {})),
            artifact_dir=artifact_dir,
            enable_tensorboard=bool(tensorboard_cfg.get("enabled", True)),
            tensorboard_log_interval=max(1, int(tensorboard_cfg.get("log_interval", log_interval))),
            max_batches_per_epoch=int(max_batches) if max_batches is not None else None,
        )

    def resolve_device(self) -> torch.device:
        if self.device != "auto":
            return torch.device(self.device)
        return torch.device("cuda" if torch.cuda.is_available() else "cpu")


@dataclass
class EpochMetrics:
    epoch: int
    train_loss: float
    seen: int
    diagnostics: Dict[str, float] = field(default_factory=dict)


@dataclass
class TrainingResult:
    metrics: List[EpochMetrics]
    checkpoints: List[Path]
    summary_path: Optional[Path] = None


class Trainer:
    """Runs a network whose output is the flat detection tensor against the detection cost.

    The dataloader yields ``(inputs, ground_truth)`` pairs; ``ground_truth`` holds one flat
    ground-truth vector per image.
    """

    def __init__(
        self,
        model: nn.Module,
        bundle: DetectionBundle,
        dataloaders: Dict[str, DataLoader],
        config: TrainerConfig,
    ) -> None:
        self.config = config
        self.device = config.resolve_device()
        self.model = model.to(self.device)
        self.bundle = bundle
        self.criterion = bundle.criterion
        self.dataloaders = dataloaders
        self.optimizer = _build_optimizer(self.model.parameters(), config)
        self.scheduler = _build_scheduler(self.optimizer, config)
        self.checkpoint_dir = ensure_dir(config.artifact_dir / "checkpoints")
        self.seen = 0

        self.writer: Optional[SummaryWriter] = None
        if config.enable_tensorboard:
            tensorboard_dir = ensure_dir(config.artifact_dir / "tensorboard")
            self.writer = SummaryWriter(log_dir=str(tensorboard_dir))
            LOGGER.info("TensorBoard logging enabled at %s", tensorboard_dir)

        LOGGER.info("Trainer initialized on device: %s", self.device)

    def train(self) -> TrainingResult:
        train_loader = self.dataloaders.get("train")
        if train_loader is None:
            LOGGER.warning("No training dataloader available; aborting training")
            return TrainingResult(metrics=[], checkpoints=[], summary_path=None)

        metrics: List[EpochMetrics] = []
        checkpoints: List[Path] = []
        try:
            for epoch in range(1, self.config.num_epochs + 1):
                train_loss = self._train_epoch(train_loader, epoch)
                if self.scheduler is not None:
                    self.scheduler.step()

                diagnostics = self.bundle.layer.diagnostics
                epoch_metrics = EpochMetrics(
                    epoch=epoch,
                    train_loss=train_loss,
                    seen=self.seen,
                    diagnostics=diagnostics.as_dict() if diagnostics is not None else {},
                )
                metrics.append(epoch_metrics)
                LOGGER.info("Epoch %d | train_loss=%.4f | seen=%d", epoch, train_loss, self.seen)

                if self.writer is not None:
                    self.writer.add_scalar("Loss/Train_Epoch", train_loss, epoch)

                if epoch % self.config.checkpoint_interval == 0 or epoch == self.config.num_epochs:
                    checkpoints.append(self._save_checkpoint(epoch, train_loss))
        finally:
            if self.writer is not None:
                self.writer.close()

        summary_path = self._persist_epoch_metrics(metrics)
        return TrainingResult(metrics=metrics, checkpoints=checkpoints, summary_path=summary_path)

    def _train_epoch(self, loader: DataLoader, epoch: int) -> float:
        self.model.train()
        total_loss = 0.0
        total_batches = 0

        effective_loader_length = len(loader)
        if self.config.max_batches_per_epoch is not None:
            effective_loader_length = min(len(loader), self.config.max_batches_per_epoch)

        for batch_index, (inputs, truth) in enumerate(loader, start=1):
            if batch_index > effective_loader_length:
                LOGGER.info("Reached batch limit of %d for epoch %d", effective_loader_length, epoch)
                break

            inputs = inputs.to(self.device)
            truth = truth.to(self.device)
            self.seen += inputs.shape[0]

            predictions = self.model(inputs).reshape(inputs.shape[0], -1)
            loss = self.criterion(predictions, truth, seen=self.seen)
            loss.backward()

            if self.config.gradient_clip_norm is not None and self.config.gradient_clip_norm > 0:
                clip_grad_norm_(self.model.parameters(), self.config.gradient_clip_norm)

            self.optimizer.step()
            self.optimizer.zero_grad(set_to_none=True)

            total_loss += float(loss.item())
            total_batches += 1

            if batch_index % self.config.log_interval == 0:
                LOGGER.info("Epoch %d | Batch %d/%d | loss=%.4f", epoch, batch_index, effective_loader_length, loss.item())

            if self.writer is not None and batch_index % self.config.tensorboard_log_interval == 0:
                self._log_scalars(loss.item())

        return total_loss / max(total_batches, 1)

    def _log_scalars(self, loss_value: float) -> None:
        self.writer.add_scalar("Loss/Train_Batch", loss_value, self.seen)
        diagnostics = self.bundle.layer.diagnostics
        if diagnostics is None:
            return
        for name, value in diagnostics.as_dict().items():
            if not math.isnan(value):
                self.writer.add_scalar(f"Detection/{name}", value, self.seen)

    def _save_checkpoint(self, epoch: int, train_loss: float) -> Path:
        checkpoint_path = self.checkpoint_dir / f"epoch_{epoch:03d}.pt"
        torch.save(
            {
                "epoch": epoch,
                "seen": self.seen,
                "state_dict": self.model.state_dict(),
                "optimizer": self.optimizer.state_dict(),
                "train_loss": train_loss,
            },
            checkpoint_path,
        )
        LOGGER.info("Saved checkpoint to %s", checkpoint_path)
        return checkpoint_path

    def _persist_epoch_metrics(self, metrics: List[EpochMetrics]) -> Path:
        summary_file = write_json(
            self.config.artifact_dir / "training_history.json",
            {"epochs": [asdict(entry) for entry in metrics], "layer": self.bundle.metadata},
        )
        LOGGER.info("Persisted training history to %s", summary_file)
        return summary_file


def _build_optimizer(parameters: Iterable[torch.Tensor], config: TrainerConfig) -> torch.optim.Optimizer:
    name = config.optimizer.lower()
    if name == "adamw":
        return torch.optim.AdamW(parameters, lr=config.learning_rate, weight_decay=config.weight_decay)
    if name == "sgd":
        return torch.optim.SGD(parameters, lr=config.learning_rate, momentum=0.9, weight_decay=config.weight_decay)
    raise ValueError(f"Unsupported optimizer '{config.optimizer}'")


def _build_scheduler(optimizer: torch.optim.Optimizer, config: TrainerConfig) -> Optional[torch.optim.lr_scheduler.LRScheduler]:
    if config.scheduler is None:
        return None
    name = str(config.scheduler).lower()
    params = dict(config.scheduler_params)
    if name == "steplr":
        step_size = int(params.get("step_size", max(1, config.num_epochs // 3)))
        gamma = float(params.get("gamma", 0.1))
        return torch.optim.lr_scheduler.StepLR(optimizer, step_size=step_size, gamma=gamma)
    if name == "cosineannealing":
        t_max = int(params.get("t_max", config.num_epochs))
        eta_min = float(params.get("eta_min", 0.0))
        return torch.optim.lr_scheduler.CosineAnnealingLR(optimizer, T_max=t_max, eta_min=eta_min)
    raise ValueError(f"Unsupported scheduler '{config.scheduler}'")


def run_training(config: Dict[str, Any], model: nn.Module, dataloaders: Dict[str, DataLoader]) -> TrainingResult:
    trainer_config = TrainerConfig.from_config(config)
    bundle = create_detection_layer(config)
    trainer = Trainer(model, bundle, dataloaders, trainer_config)
    return trainer.train()
