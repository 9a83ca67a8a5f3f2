"""
Logging Manager for RagaBot
Rotating log files per concern plus lightweight command performance tracking
"""
import json
import logging
import time
from collections import defaultdict, deque
from datetime import datetime, timedelta
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from config.settings import LOG_DIR

LOGGER_FILES = {
    'bot': ('bot.log', logging.INFO, 5),
    'music': ('music.log', logging.INFO, 3),
    'errors': ('errors.log', logging.ERROR, 10),
    'database': ('database.log', logging.INFO, 3),
    'cache': ('cache.log', logging.INFO, 3),
}


class PerformanceTracker:
    """Track command timings and error counts"""

    def __init__(self):
        self.command_times = deque(maxlen=1000)
        self.error_counts = defaultdict(int)
        self.start_time = time.time()
        self.slow_command_threshold = 5.0  # seconds

    def track_command_execution(self, command_name: str, execution_time: float, success: bool):
        self.command_times.append({
            'command': command_name,
            'time': execution_time,
            'timestamp': time.time(),
            'success': success,
        })

        if execution_time > self.slow_command_threshold:
            logging.getLogger('bot').warning(f"Slow command detected: {command_name} took {execution_time:.2f}s")

    def get_performance_summary(self) -> Dict[str, Any]:
        now = time.time()
        uptime = now - self.start_time
        recent = [cmd for cmd in self.command_times if now - cmd['timestamp'] < 3600]
        avg_time = sum(cmd['time'] for cmd in recent) / len(recent) if recent else 0

        return {
            'uptime_seconds': uptime,
            'uptime_formatted': str(timedelta(seconds=int(uptime))),
            'commands_executed': len(self.command_times),
            'recent_commands_per_hour': len(recent),
            'avg_command_time': round(avg_time, 3),
            'failed_commands': sum(1 for cmd in self.command_times if not cmd['success']),
            'errors': dict(self.error_counts),
        }


class LoggingManager:
    """Named loggers with rotating file handlers"""

    def __init__(self, log_dir: str = LOG_DIR, max_log_size_mb: int = 10):
        self.log_dir = Path(log_dir)
        self.max_log_size_mb = max_log_size_mb
        self.performance = PerformanceTracker()
        self._configured = False

        self.bot_logger = logging.getLogger('bot')
        self.music_logger = logging.getLogger('music')
        self.error_logger = logging.getLogger('errors')

    def setup(self):
        """Attach file and console handlers; safe to call more than once"""
        if self._configured:
            return
        self.log_dir.mkdir(parents=True, exist_ok=True)

        detailed_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        for name, (filename, level, backups) in LOGGER_FILES.items():
            handler = RotatingFileHandler(
                self.log_dir / filename,
                maxBytes=self.max_log_size_mb * 1024 * 1024,
                backupCount=backups,
                encoding='utf-8',
            )
            handler.setFormatter(detailed_formatter)
            named = logging.getLogger(name)
            named.setLevel(level)
            named.addHandler(handler)

        # Only warnings and errors reach the console
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter('%(asctime)s | %(levelname)s | %(message)s', datefmt='%H:%M:%S'))
        console_handler.setLevel(logging.WARNING)
        root = logging.getLogger()
        root.addHandler(console_handler)
        root.setLevel(logging.INFO)

        self._configured = True
        self.bot_logger.info("🔧 Logging system initialized")

    def log_command_execution(self, command_name: str, user_id: int, guild_id: Optional[int],
                              execution_time: float, success: bool, error: str = None):
        self.performance.track_command_execution(command_name, execution_time, success)

        if success:
            self.bot_logger.info(
                f"Command executed: {command_name} | User: {user_id} | Guild: {guild_id} | Time: {execution_time:.3f}s"
            )
        else:
            self.bot_logger.error(
                f"Command failed: {command_name} | User: {user_id} | Guild: {guild_id} | Time: {execution_time:.3f}s | Error: {error}"
            )

    def log_music_event(self, event_type: str, guild_id: int, details: Dict[str, Any]):
        self.music_logger.info(f"{event_type} | Guild: {guild_id} | Details: {json.dumps(details, default=str)}")

    def log_error(self, error: Exception, context: Dict[str, Any] = None):
        """Log an error with its context and stack trace"""
        error_info = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'timestamp': datetime.now().isoformat(),
            'context': context or {},
        }
        self.performance.error_counts[error_info['error_type']] += 1
        self.error_logger.error(f"Error occurred: {json.dumps(error_info, default=str)}", exc_info=error)

    def get_health_status(self) -> Dict[str, Any]:
        summary = self.performance.get_performance_summary()
        error_total = sum(summary['errors'].values())
        return {
            'status': 'healthy' if error_total < 50 else 'degraded',
            'uptime': summary['uptime_seconds'],
            'commands_executed': summary['commands_executed'],
            'errors': error_total,
        }


# Global logging manager instance
logging_manager = LoggingManager()
