import random
import time

RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})


class HttpRetryPolicy:
    def __init__(self, max_retries=5, base_delay=1.0, max_delay=30.0):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    def should_retry(self, status_code, attempt):
        return status_code in RETRYABLE_STATUS_CODES and attempt < self.max_retries

    def delay(self, attempt, retry_after=None):
        if retry_after:
            try:
                return min(self.max_delay, float(retry_after))
            except ValueError:
                pass
        delay = min(self.max_delay, self.base_delay * (2 ** attempt))
        delay += random.uniform(0, delay * 0.2)
        return delay

    def wait(self, attempt, retry_after=None):
        time.sleep(self.delay(attempt, retry_after))
