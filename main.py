"""Rolling log demo: generates log lines through a time-based rolling writer."""

import logging
import random
import signal
import sys
import time
import uuid
from datetime import datetime, timezone

from timeroll.config import load_config
from timeroll.errors import ConfigurationError, RolloverActionError
from timeroll.executor import ActionExecutor
from timeroll.policy import TimeBasedRollingPolicy
from timeroll.writer import RollingFileWriter

logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, _frame):
    global _running
    logger.info("Shutdown signal received (signal %d), stopping...", sig)
    _running = False


LEVELS = ["INFO", "INFO", "INFO", "INFO", "DEBUG", "WARN", "ERROR"]
SERVICES = ["auth-api", "order-svc", "payment-gw", "user-svc", "catalog-api"]
MESSAGES = {
    "INFO": [
        "Request processed successfully",
        "Health check passed",
        "Cache hit for user session",
    ],
    "DEBUG": [
        "Entering request handler",
        "Token validation started",
    ],
    "WARN": [
        "Slow query detected (>500ms)",
        "Connection pool nearing capacity",
    ],
    "ERROR": [
        "Failed to connect to database",
        "Timeout waiting for upstream response",
    ],
}


def generate_entry() -> str:
    now = datetime.now(timezone.utc)
    timestamp = now.strftime("%Y-%m-%d %H:%M:%S.") + f"{now.microsecond // 1000:03d}"
    level = random.choice(LEVELS)
    service = random.choice(SERVICES)
    req_id = uuid.uuid4().hex[:8]
    message = random.choice(MESSAGES[level])
    return f"{timestamp} [{level}] [{service}] [{req_id}] {message}"


def main(argv=None) -> int:
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        config = load_config(argv)
    except ConfigurationError as exc:
        logging.basicConfig(level=logging.INFO, stream=sys.stderr)
        logger.error("Invalid configuration: %s", exc)
        return 2

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [timeroll] %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logger.info(
        "Config: pattern=%s, active_file=%s, interval=%.2fs, run_time=%.0fs",
        config.file_name_pattern, config.active_file_name, config.write_interval, config.run_time,
    )

    policy = TimeBasedRollingPolicy(config.file_name_pattern, config.active_file_name)
    executor = ActionExecutor()
    try:
        writer = RollingFileWriter(policy, executor)
    except ConfigurationError as exc:
        logger.error("Cannot start rolling writer: %s", exc)
        return 2

    entries_written = 0
    started = time.monotonic()
    status = 0

    try:
        while _running:
            result = writer.write(generate_entry())
            entries_written += 1

            if result is not None:
                logger.info("Rolled over to %s (%d entries written so far)",
                            result.active_file_path, entries_written)
                for action in result.sync_actions + result.async_actions:
                    logger.info("  %r", action)

            if config.run_time > 0 and time.monotonic() - started >= config.run_time:
                break
            time.sleep(config.write_interval)
    except KeyboardInterrupt:
        pass
    except RolloverActionError as exc:
        logger.error("Stopping: %s", exc)
        status = 1

    writer.close()
    executor.stop()
    logger.info("Shut down cleanly. Total entries written: %d (%d action(s) completed, %d failed)",
                entries_written, executor.completed, executor.failures)
    return status


if __name__ == "__main__":
    sys.exit(main())
