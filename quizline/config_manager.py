"""
Configuration manager for quiz server settings and the client server-info file.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models import ServerAddress, ServerSettings


class ConfigManager:
    """Manages server configuration and reads the client connection file."""

    # Default configuration values
    DEFAULT_HOST = "localhost"
    DEFAULT_PORT = 1234
    DEFAULT_MAX_SESSIONS = 5
    DEFAULT_READ_TIMEOUT = 300
    DEFAULT_SERVER_INFO_FILE = "server_info.dat"

    # Validation limits
    MIN_PORT = 0  # 0 lets the operating system pick a free port
    MAX_PORT = 65535
    MIN_MAX_SESSIONS = 1
    MAX_MAX_SESSIONS = 100
    MIN_READ_TIMEOUT = 1
    MAX_READ_TIMEOUT = 3600  # 1 hour

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._settings = ServerSettings(
            host=self.DEFAULT_HOST,
            port=self.DEFAULT_PORT,
            max_sessions=self.DEFAULT_MAX_SESSIONS,
            read_timeout=self.DEFAULT_READ_TIMEOUT
        )
        self._question_file: Optional[str] = None

    def get_server_settings(self) -> ServerSettings:
        """
        Get current server settings.

        Returns:
            ServerSettings copy with current configuration
        """
        return ServerSettings(
            host=self._settings.host,
            port=self._settings.port,
            max_sessions=self._settings.max_sessions,
            read_timeout=self._settings.read_timeout
        )

    def set_host(self, host: str) -> Dict[str, Any]:
        """
        Set the host the server listens on.

        Args:
            host: Host name or IP address

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(host, str):
            error_msg = f"Host must be a string, got {type(host).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a host name, got {type(host).__name__}"
            }

        if not host.strip():
            error_msg = "Host cannot be empty"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Host cannot be empty"
            }

        self._settings.host = host.strip()
        self.logger.info(f"Host set to {self._settings.host}")
        return {
            'success': True,
            'message': f"Host set to {self._settings.host}",
            'user_message': f"✅ Server will listen on {self._settings.host}"
        }

    def set_port(self, port: int) -> Dict[str, Any]:
        """
        Set the TCP port the server listens on.

        Args:
            port: Port number, 0 to let the system choose

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        # bool is an int subclass but never a meaningful port
        if not isinstance(port, int) or isinstance(port, bool):
            error_msg = f"Port must be an integer, got {type(port).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(port).__name__}"
            }

        if port < self.MIN_PORT or port > self.MAX_PORT:
            error_msg = f"Port must be between {self.MIN_PORT} and {self.MAX_PORT}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Port out of range: use {self.MIN_PORT}-{self.MAX_PORT}"
            }

        self._settings.port = port
        self.logger.info(f"Port set to {port}")
        return {
            'success': True,
            'message': f"Port set to {port}",
            'user_message': f"✅ Port set to {port}"
        }

    def set_max_sessions(self, count: int) -> Dict[str, Any]:
        """
        Set how many sessions may run at the same time.

        Args:
            count: Size of the session pool

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(count, int) or isinstance(count, bool):
            error_msg = f"Session limit must be an integer, got {type(count).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(count).__name__}"
            }

        if count < self.MIN_MAX_SESSIONS:
            error_msg = f"Session limit must be at least {self.MIN_MAX_SESSIONS}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Too few sessions: Minimum is {self.MIN_MAX_SESSIONS}"
            }

        if count > self.MAX_MAX_SESSIONS:
            error_msg = f"Session limit cannot exceed {self.MAX_MAX_SESSIONS}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Too many sessions: Maximum is {self.MAX_MAX_SESSIONS}"
            }

        self._settings.max_sessions = count
        self.logger.info(f"Session limit set to {count}")
        return {
            'success': True,
            'message': f"Session limit set to {count}",
            'user_message': f"✅ Up to {count} sessions will run at once"
        }

    def set_read_timeout(self, timeout: Optional[Union[int, float]]) -> Dict[str, Any]:
        """
        Set how long a session waits for a client line before closing.

        Args:
            timeout: Seconds, or None to wait indefinitely

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if timeout is None:
            self._settings.read_timeout = None
            self.logger.info("Read timeout disabled")
            return {
                'success': True,
                'message': "Read timeout disabled",
                'user_message': "✅ Sessions will wait for input indefinitely"
            }

        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool):
            error_msg = f"Read timeout must be a number, got {type(timeout).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(timeout).__name__}"
            }

        if timeout < self.MIN_READ_TIMEOUT or timeout > self.MAX_READ_TIMEOUT:
            error_msg = (
                f"Read timeout must be between {self.MIN_READ_TIMEOUT} "
                f"and {self.MAX_READ_TIMEOUT} seconds"
            )
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': (
                    f"❌ Timeout out of range: use {self.MIN_READ_TIMEOUT}-{self.MAX_READ_TIMEOUT} seconds"
                )
            }

        self._settings.read_timeout = timeout
        self.logger.info(f"Read timeout set to {timeout} seconds")
        return {
            'success': True,
            'message': f"Read timeout set to {timeout} seconds",
            'user_message': f"✅ Idle sessions close after {timeout} seconds"
        }

    def get_question_file(self) -> Optional[str]:
        """Path of the JSON question file, or None for the built-in bank."""
        return self._question_file

    def apply_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Apply the ``server`` section of a config.json dictionary.

        Invalid values are logged and skipped so the defaults stay in effect.

        Args:
            config: Parsed config.json contents

        Returns:
            List of error messages for values that were rejected
        """
        server_config = config.get('server', {}) if isinstance(config, dict) else {}
        errors = []

        setters = (
            ('host', self.set_host),
            ('port', self.set_port),
            ('max_sessions', self.set_max_sessions),
            ('read_timeout', self.set_read_timeout),
        )
        for key, setter in setters:
            if key in server_config:
                result = setter(server_config[key])
                if not result['success']:
                    errors.append(f"{key}: {result['error']}")

        question_file = server_config.get('question_file')
        if question_file:
            self._question_file = str(question_file)

        if errors:
            self.logger.warning(f"Ignored {len(errors)} invalid configuration values")
        return errors

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        timeout_str = (
            f"{self._settings.read_timeout} seconds"
            if self._settings.read_timeout is not None
            else "disabled"
        )
        return (
            f"Server Settings:\n"
            f"• Address: {self._settings.host}:{self._settings.port}\n"
            f"• Session slots: {self._settings.max_sessions}\n"
            f"• Read timeout: {timeout_str}\n"
            f"• Questions: {self._question_file or 'built-in'}"
        )

    def read_server_info(self, file_path: Union[str, Path, None] = None) -> ServerAddress:
        """
        Read the server address from a two-line file: host, then port.

        A missing, unreadable or malformed file falls back to the defaults.

        Args:
            file_path: Path to the server info file

        Returns:
            ServerAddress, with from_defaults set when the fallback was used
        """
        path = Path(file_path or self.DEFAULT_SERVER_INFO_FILE)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                lines = f.read().splitlines()
        except OSError as e:
            self.logger.warning(f"Configuration file {path} not readable ({e}), using defaults")
            return self._default_address()

        if len(lines) < 2:
            self.logger.warning(f"Configuration file {path} needs a host and a port line, using defaults")
            return self._default_address()

        host = lines[0].strip()
        try:
            port = int(lines[1].strip())
        except ValueError:
            self.logger.warning(f"Invalid port {lines[1]!r} in {path}, using defaults")
            return self._default_address()

        if not host or not 1 <= port <= self.MAX_PORT:
            self.logger.warning(f"Invalid server address {host!r}:{port} in {path}, using defaults")
            return self._default_address()

        self.logger.info(f"Server address {host}:{port} read from {path}")
        return ServerAddress(host=host, port=port)

    def _default_address(self) -> ServerAddress:
        return ServerAddress(
            host=self.DEFAULT_HOST,
            port=self.DEFAULT_PORT,
            from_defaults=True
        )
