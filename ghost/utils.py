import logging
from datetime import datetime, timezone

# Custom logging formatter to support colors
class ColoredFormatter(logging.Formatter):
    # Define color codes
    COLORS = {
        'DEBUG': '\033[94m',   # Blue
        'INFO': '\033[92m',    # Green
        'WARNING': '\033[93m', # Yellow
        'ERROR': '\033[91m',   # Red
        'CRITICAL': '\033[95m' # Magenta
    }
    RESET = '\033[0m'  # Reset color

    def format(self, record):
        # Add color to the log level name
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        return super().format(record)


SENSITIVE_KEYS = [
    'api_key', 'apikey', 'x-api-key',
    'token', 'access_token', 'refresh_token',
    'authorization', 'secret', 'password',
]


def sanitize_sensitive_data(data, sensitive_keys=None):
    """
    Remove or mask sensitive data before logging.

    Args:
        data: Dictionary, list, or other data to sanitize
        sensitive_keys: List of keys to mask (default: API keys and tokens)

    Returns:
        Sanitized version of the data
    """
    if sensitive_keys is None:
        sensitive_keys = SENSITIVE_KEYS

    if isinstance(data, dict):
        sanitized = {}
        for k, v in data.items():
            key_lower = str(k).lower()
            is_sensitive = any(sens in key_lower for sens in sensitive_keys)

            if is_sensitive:
                # Show only first 2 and last 2 chars if string, else mask completely
                if isinstance(v, str) and len(v) > 4:
                    sanitized[k] = f"{v[:2]}***{v[-2:]}"
                else:
                    sanitized[k] = "***"
            elif isinstance(v, (dict, list)):
                sanitized[k] = sanitize_sensitive_data(v, sensitive_keys)
            else:
                sanitized[k] = v
        return sanitized

    elif isinstance(data, list):
        return [sanitize_sensitive_data(item, sensitive_keys) if isinstance(item, (dict, list)) else item for item in data]

    return data


def is_empty_result(value):
    """None and empty containers count as 'nothing came back'"""
    return value is None or (isinstance(value, (list, dict, tuple)) and len(value) == 0)


def to_signed_hash(value):
    """Content tables key definitions by the hash as a signed 32-bit integer"""
    value = int(value)
    return value - (1 << 32) if value >= (1 << 31) else value


def to_unsigned_hash(value):
    value = int(value)
    return value + (1 << 32) if value < 0 else value


def now_utc():
    """Returns current datetime in UTC (aware)"""
    return datetime.now(timezone.utc)
