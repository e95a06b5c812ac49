class AnalysisError(Exception):
    pass


class InvalidModuleDeclaration(AnalysisError):
    def __init__(self, identifier, declaration):
        self.identifier = identifier
        self.declaration = declaration
        super().__init__(
            f"Module table entry {identifier!r} is not a module class "
            f"or a (module class, options) pair: {declaration!r}"
        )


class UnknownDependency(AnalysisError):
    def __init__(self, identifier, missing):
        self.identifier = identifier
        self.missing = missing
        super().__init__(
            f"Module {identifier!r} depends on {missing!r}, "
            "which is not in the module table"
        )


class CyclicDependency(AnalysisError):
    def __init__(self, cycle):
        self.cycle = list(cycle)
        super().__init__(
            "Cyclic module dependency: " + " -> ".join(self.cycle)
        )


class MalformedEvent(AnalysisError):
    def __init__(self, event, reason):
        self.event = event
        self.reason = reason
        super().__init__(f"Malformed event ({reason}): {event!r}")


class ModuleStateError(AnalysisError):
    pass


class ModuleError(AnalysisError):
    """A module handler raised while an event was being dispatched.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, identifier, event):
        self.identifier = identifier
        self.event = event
        super().__init__(
            f"Module {identifier!r} failed on {event.type} event "
            f"at {event.timestamp}"
        )
