class HysteresisFilter:
    """
    Debounce a noisy per-frame boolean.

    The filter reports a condition as confirmed only after it has held for
    ``required_frames`` consecutive updates. A single disagreeing frame drops
    confirmation immediately and restarts the run.
    """

    def __init__(self, required_frames: int = 3):
        if required_frames < 1:
            raise ValueError(f"required_frames must be >= 1, got {required_frames}")
        self.required_frames = required_frames
        self._last_value = None
        self._run_length = 0

    @property
    def run_length(self) -> int:
        return self._run_length

    @property
    def confirmed(self) -> bool:
        return bool(self._last_value) and self._run_length >= self.required_frames

    def update(self, condition_holds: bool) -> bool:
        condition_holds = bool(condition_holds)
        if condition_holds == self._last_value:
            self._run_length += 1
        else:
            self._last_value = condition_holds
            self._run_length = 1
        return self.confirmed

    def reset(self) -> None:
        self._last_value = None
        self._run_length = 0
