'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-30 17:25:00
 # @ Modified time: 2025-11-06 11:00:00
 # @ Description: Command-line entry point that decodes saved detection-layer outputs into JSON.
'''
import argparse
import logging
from pathlib import Path

import torch

from models import create_detection_layer
from utils.utils import load_yaml_config, write_json


def _setup_logging(log_level: str) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Grid detection layer decoding entry point",
        epilog="""
Examples:
  python main.py --predictions preds.pt --width 448 --height 448
  python main.py --config my_config.yaml --predictions preds.pt --width 640 --height 480 --thresh 0.2
  python main.py --predictions preds.pt --width 448 --height 448 --only-objectness --output dets.json
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=str, default="config.yaml", help="Path to the YAML configuration file")
    parser.add_argument("--predictions", type=str, required=True, help="Tensor saved with torch.save holding batch*inputs values")
    parser.add_argument("--width", type=int, required=True, help="Image width in pixels")
    parser.add_argument("--height", type=int, required=True, help="Image height in pixels")
    parser.add_argument("--thresh", type=float, default=0.2, help="Class probabilities at or below this value are zeroed")
    parser.add_argument("--only-objectness", action="store_true", help="Report raw objectness as the class-0 probability")
    parser.add_argument("--image-index", type=int, default=0, help="Image of the batch to decode")
    parser.add_argument("--output", type=str, default="detections.json", help="Destination JSON file")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    _setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    config_path = Path(args.config)
    logger.info("Loading configuration from %s", config_path)
    config = load_yaml_config(config_path)
    bundle = create_detection_layer(config)

    predictions = torch.load(args.predictions, map_location="cpu")
    if not isinstance(predictions, torch.Tensor):
        raise ValueError(f"Expected a tensor in {args.predictions}, got {type(predictions)!r}")
    bundle.layer.forward(predictions.to(torch.float32), train=False)

    detections = bundle.layer.get_detections(
        args.width,
        args.height,
        args.thresh,
        only_objectness=args.only_objectness,
        batch_index=args.image_index,
    )
    output_path = write_json(
        args.output,
        {
            "width": args.width,
            "height": args.height,
            "thresh": args.thresh,
            "layer": bundle.metadata,
            "detections": [detection.to_dict() for detection in detections],
        },
    )
    logger.info("Wrote %d detections to %s", len(detections), output_path)


if __name__ == "__main__":
    main()
