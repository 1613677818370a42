import yaml

from pathlib import Path
from typing import Any

def load_config(config_path: str = 'cfg/config.yaml') -> dict[str, Any]:
   """
   Load configuration from YAML file.
   
   Args:
      config_path: Path to config.yaml file.
      
   Returns:
      Configuration as a dictionary.

   Raises:
      RuntimeError: File missing, unreadable or not a mapping.
   """
   try:
      config_file = Path(config_path)
      if not config_file.exists():
         raise FileNotFoundError(f"config.yaml not found at: {config_path}")
      else:
         with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)

            if not isinstance(config, dict):
               raise ValueError("config.yaml must contain a mapping at top level")
            return config

   except Exception as e:
      raise RuntimeError(f"Failed to load config.yaml: {e}") from e
