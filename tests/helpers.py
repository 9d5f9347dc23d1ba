from concurrent.futures import Executor, Future

from storefront.services.delivery_pricing import parse_bands

STORE = (22.9962, 72.6036)
# roughly 1.1 km, 6 km, 10 km and 20 km due north of the store
NEAR = (STORE[0] + 0.01, STORE[1])
MID = (STORE[0] + 0.054, STORE[1])
FAR = (STORE[0] + 0.09, STORE[1])
VERY_FAR = (STORE[0] + 0.18, STORE[1])

BANDS = parse_bands("5:0,8:40,12:60", 100)


class RecordingFanout:
    def __init__(self):
        self.published = []

    def publish(self, order, event=None):
        self.published.append((order, event))

    @property
    def events(self):
        return [event for _, event in self.published]


class FakeLockService:
    def __init__(self):
        self.held = {}
        self.released = []

    def acquire_checkout_lock(self, user_id, ttl):
        if user_id in self.held:
            return None
        token = f"token-{user_id}"
        self.held[user_id] = token
        return token

    def release_checkout_lock(self, user_id, token):
        self.released.append(user_id)
        return self.held.pop(user_id, None) == token


class InlineExecutor(Executor):
    """Runs submitted jobs on the calling thread, so tests can assert on them right away."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future
