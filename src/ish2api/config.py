"""Configuration handling for ish2api proxy."""

import yaml
import logging
import os
from pathlib import Path
from types import MappingProxyType

from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

filter_logger = logging.getLogger("filter")
filter_logger.setLevel(logging.INFO)
filter_logger.propagate = True

load_dotenv()

VERSION = "1.0.2"

DEFAULT_TARGET_URL = "https://text.pollinations.ai/openai"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000
DEFAULT_MARKER = "Sponsor"

# Sent verbatim on every upstream call; the upstream only answers requests
# that look like they come from its own web client.
UPSTREAM_HEADERS = MappingProxyType(
    {
        "Accept": "*/*",
        "Accept-Encoding": "gzip, deflate, br, zstd",
        "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
        "Content-Type": "application/json",
        "Origin": "https://ish.junioralive.in",
        "Referer": "https://ish.junioralive.in/",
        "Sec-Ch-Ua": '"Not/A)Brand";v="8", "Chromium";v="126", "Microsoft Edge";v="126"',
        "Sec-Ch-Ua-Mobile": "?0",
        "Sec-Ch-Ua-Platform": '"Windows"',
        "Sec-Fetch-Dest": "empty",
        "Sec-Fetch-Mode": "cors",
        "Sec-Fetch-Site": "cross-site",
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36 Edg/126.0.0.0",
    }
)

CORS_HEADERS = MappingProxyType(
    {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }
)


def default_config():
    return {
        "upstream": {"target_url": DEFAULT_TARGET_URL},
        "server": {"host": DEFAULT_HOST, "port": DEFAULT_PORT},
        "filter": {"marker": DEFAULT_MARKER},
        "settings": {"timeout": None},
    }


def load_config():
    """
    Load configuration from config.yaml file, then apply environment overrides.

    TARGET_URL, HOST and PORT in the environment (or a .env file) win over
    the file. Sections missing from the file keep their defaults.
    """
    config = default_config()
    try:
        config_path = Path(__file__).parent.parent.parent / "config.yaml"
        config_yaml = config_path.read_text()
        loaded = yaml.safe_load(config_yaml) or {}
        for section, values in loaded.items():
            if isinstance(values, dict) and section in config:
                config[section].update(values)
            else:
                config[section] = values
        logger.info("Successfully loaded configuration from config.yaml")
    except Exception as e:
        logger.error(f"Error loading config.yaml: {str(e)}")

    target_url = os.environ.get("TARGET_URL")
    if target_url:
        config["upstream"]["target_url"] = target_url

    host = os.environ.get("HOST")
    if host:
        config["server"]["host"] = host

    port = os.environ.get("PORT")
    if port:
        try:
            config["server"]["port"] = int(port)
        except ValueError:
            logger.warning(f"Ignoring invalid PORT value: {port!r}")

    file_port = config["server"].get("port")
    try:
        config["server"]["port"] = int(file_port or DEFAULT_PORT)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid server.port value: {file_port!r}")
        config["server"]["port"] = DEFAULT_PORT

    return config


def setup_file_logging(log_dir=None):
    """
    Also append filter events to <log_dir>/filter.log.

    Called once when the server starts, not on import. LOG_DIR overrides
    the default logs/ directory at the project root.
    """
    if log_dir is None:
        log_dir = os.environ.get("LOG_DIR", Path(__file__).parent.parent.parent / "logs")
    log_dir = Path(log_dir)
    os.makedirs(log_dir, exist_ok=True)

    filter_log_file = log_dir / "filter.log"
    file_handler = logging.FileHandler(str(filter_log_file), mode="a")
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    filter_logger.addHandler(file_handler)
    logger.info(f"Writing filter events to {filter_log_file}")
    return file_handler


config = load_config()

TARGET_URL = config["upstream"].get("target_url")
if not TARGET_URL:
    logger.warning("Target URL not set in config.yaml, using default value")
    TARGET_URL = DEFAULT_TARGET_URL

HOST = config["server"].get("host") or DEFAULT_HOST
PORT = config["server"]["port"]
MARKER = config["filter"].get("marker") or DEFAULT_MARKER
TIMEOUT = config["settings"].get("timeout")
