class SelectionUsageError(Exception):
    """A selection operation was called in a way the host should never do."""


class AlreadyActiveError(SelectionUsageError):
    def __init__(self):
        super().__init__("A selection session is already active")


class NoSurfacesError(SelectionUsageError):
    def __init__(self):
        super().__init__("A selection session needs at least one display surface")


class InvalidTransitionError(SelectionUsageError):
    def __init__(self, operation: str, state):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot call {operation}() while selection is {state.value}")
