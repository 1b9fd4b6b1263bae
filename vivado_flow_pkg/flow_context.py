"""Per-invocation timing context for Vivado flows.

Source generators need to know whether they are being elaborated for simulation
or for synthesis. Each flow carries its own FlowContext instead of toggling a
process-wide switch, so flows running side by side cannot see each other's state.
"""
from contextlib import contextmanager


class FlowContext:
    """Holds the timing-context state of a single flow."""

    def __init__(self, at_sim_time: bool = True):
        self.at_sim_time = at_sim_time

    @contextmanager
    def synthesis(self):
        """Mark the context as synthesis time for the duration of the block.

        The previous value is restored on every exit path, including exceptions
        raised by the flow.

        Example:
            ```python
            context = FlowContext()
            with context.synthesis():
                assert context.at_sim_time is False
            assert context.at_sim_time is True
            ```
        """
        previous = self.at_sim_time
        self.at_sim_time = False
        try:
            yield self
        finally:
            self.at_sim_time = previous

    def __repr__(self):
        return f"FlowContext(at_sim_time={self.at_sim_time})"
