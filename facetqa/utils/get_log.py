import logging
import os
from datetime import datetime
from logging import WARNING, FileHandler
from logging.handlers import TimedRotatingFileHandler


class GetLog:
    logger = None
    log_folder = None

    @classmethod
    def get_log(cls, log_dir="./logs", level=logging.INFO):
        """Initialize the root logger once and return it.

        Args:
            log_dir (str): Parent folder; each run logs into a timestamped subfolder.
            level (int): Level for the run log and the console.
        """
        if cls.logger is None:
            current_time = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            cls.log_folder = os.path.join(log_dir, current_time)
            os.environ["FACETQA_TIMESTAMP"] = current_time
            os.makedirs(cls.log_folder, exist_ok=True)

            cls.logger = logging.getLogger()
            cls.logger.setLevel(level)

            fmt = "%(asctime)s %(levelname)s [%(name)s] [%(filename)s (%(funcName)s:%(lineno)d)] - %(message)s"
            fm = logging.Formatter(fmt)

            # run log, rotated at midnight
            th = TimedRotatingFileHandler(
                filename=os.path.join(cls.log_folder, "log.log"),
                when="midnight",
                interval=1,
                backupCount=3,
                encoding="utf-8",
            )
            th.setLevel(level)
            th.setFormatter(fm)
            cls.logger.addHandler(th)

            # warnings and errors only
            error_handler = FileHandler(filename=os.path.join(cls.log_folder, "error.log"), encoding="utf-8")
            error_handler.setLevel(WARNING)
            error_handler.setFormatter(fm)
            cls.logger.addHandler(error_handler)

            console_handler = logging.StreamHandler()
            console_handler.setLevel(level)
            console_handler.setFormatter(fm)
            cls.logger.addHandler(console_handler)

            # requests/urllib3 log every retried connection at INFO
            logging.getLogger("urllib3").setLevel(WARNING)

        return cls.logger
