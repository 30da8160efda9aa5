# src/imgproxy_optimizer/core/error_handling.py

import logging


class TagErrorCollector:
    """
    Context manager for a rewrite pass to collect and summarize per-tag errors.
    """
    def __init__(self, operation_name="Image rewrite", logger=None):
        self.operation_name = operation_name
        self.errors = []
        self.logger = logger or logging.getLogger(
            self.__class__.__module__ + '.' + self.__class__.__name__
        )

    def __enter__(self):
        self.logger.debug(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.errors:
            self.logger.warning(
                f"{self.operation_name} left {len(self.errors)} tag(s) untouched after errors."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.warning(
                    f"  Error {i+1}/{len(self.errors)} for tag '{error_detail['item']}': "
                    f"{error_detail['error']}"
                )
        elif exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}"
            )
        else:
            self.logger.debug(f"{self.operation_name} completed without tag errors.")

        # Unhandled exceptions propagate to the rewrite boundary
        return False

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def add_error(self, error_message, item_identifier="<img>"):
        """
        Report an error for a single tag within the 'with' block.

        Args:
            error_message: The error message or exception.
            item_identifier (str): A short excerpt identifying the failed tag.
        """
        if len(item_identifier) > 80:
            item_identifier = item_identifier[:77] + "..."
        self.errors.append({"item": item_identifier, "error": str(error_message)})
