import os
from typing import Any, Dict, List, Optional

import yaml

from y86_core_tracer.common.errors import ConfigError
from .models import SUPPORTED_MODES, SessionConfig


class ConfigLoader:
    def load_from_file(self, path: str) -> SessionConfig:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return self.parse_config(data, base_dir=os.path.dirname(os.path.abspath(path)))

    # @intent:responsibility YAMLから読み込んだ辞書をSessionConfigに変換します。
    # @intent:post-condition 相対パスはbase_dirを基準に解決されます。
    def parse_config(self, data: Any, base_dir: str = ".") -> SessionConfig:
        if not isinstance(data, dict):
            raise ConfigError("Session config must be a mapping")

        trace = data.get("trace")
        if not isinstance(trace, str) or not trace:
            raise ConfigError("Session config requires 'trace'")

        mode = data.get("mode", SUPPORTED_MODES[0])
        if mode not in SUPPORTED_MODES:
            raise ConfigError(f"Unsupported mode: {mode}")

        config = SessionConfig(
            trace=self._resolve_path(trace, base_dir),
            mode=mode,
            instruction_source=self._optional_path(data, "instruction_source", base_dir),
            data_memory=self._optional_path(data, "data_memory", base_dir),
            register_memory=self._optional_path(data, "register_memory", base_dir),
        )

        if "clock_signals" in data:
            config.clock_signals = self._parse_names(data["clock_signals"])
        if "data_memory_words" in data:
            config.data_memory_words = self._parse_int(data["data_memory_words"], "data_memory_words")
            if config.data_memory_words < 0:
                raise ConfigError(f"Invalid data_memory_words: {config.data_memory_words}")

        return config

    def _optional_path(self, data: Dict[str, Any], key: str, base_dir: str) -> Optional[str]:
        value = data.get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ConfigError(f"Invalid path for '{key}': {value}")
        return self._resolve_path(value, base_dir)

    def _resolve_path(self, path: str, base_dir: str) -> str:
        if os.path.isabs(path):
            return path
        return os.path.normpath(os.path.join(base_dir, path))

    def _parse_names(self, value: Any) -> List[str]:
        if isinstance(value, str):
            return [value]
        if isinstance(value, list) and value and all(isinstance(name, str) for name in value):
            return list(value)
        raise ConfigError(f"Invalid clock_signals: {value}")

    def _parse_int(self, value: Any, key: str) -> int:
        if isinstance(value, bool):
            raise ConfigError(f"Invalid integer format for '{key}': {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                if value.startswith("0x"):
                    return int(value, 16)
                return int(value)
            except ValueError:
                pass
        raise ConfigError(f"Invalid integer format for '{key}': {value}")
