'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-11-05 14:00:00
 # @ Modified time: 2025-11-05 14:00:00
 # @ Description: Shared configuration and filesystem helpers.
'''

from .utils import ensure_dir, load_yaml_config, read_json, write_json

__all__ = ["ensure_dir", "load_yaml_config", "read_json", "write_json"]
