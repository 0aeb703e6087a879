import os
from dataclasses import dataclass

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


def _resolve(path: str) -> str:
    return path if os.path.isabs(path) else os.path.join(BASE_DIR, path)


@dataclass(frozen=True)
class Settings:
    type_mapping_file: str
    sources_config_file: str
    fetch_timeout: float = 30.0
    host: str = '127.0.0.1'
    port: int = 5000
    debug: bool = False


def get_settings() -> Settings:
    """Read settings from the environment (.env is loaded by the app package)."""
    return Settings(
        type_mapping_file=_resolve(os.environ.get('TYPE_MAPPING_FILE', 'config/type_mapping.json')),
        sources_config_file=_resolve(os.environ.get('SOURCES_CONFIG_FILE', 'config/sources.json')),
        fetch_timeout=float(os.environ.get('TYPE_FETCH_TIMEOUT', '30')),
        host=os.environ.get('FLASK_HOST', '127.0.0.1'),
        port=int(os.environ.get('FLASK_PORT', '5000')),
        debug=_env_bool('FLASK_DEBUG'),
    )
