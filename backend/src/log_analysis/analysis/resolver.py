from typing import NamedTuple

from log_analysis.analysis.base import BaseAnalyzer
from log_analysis.analysis.errors import (
    CyclicDependency,
    InvalidModuleDeclaration,
    UnknownDependency,
)


class ModuleDeclaration(NamedTuple):
    identifier: str
    module_class: type
    options: dict

    @property
    def dependencies(self):
        return self.module_class.dependencies


def _is_module_class(value):
    return isinstance(value, type) and issubclass(value, BaseAnalyzer)


def declare(identifier, entry) -> ModuleDeclaration:
    """Normalize a module table entry: a class, or a (class, options) pair."""
    if _is_module_class(entry):
        return ModuleDeclaration(identifier, entry, {})

    if (
        isinstance(entry, (tuple, list))
        and len(entry) == 2
        and _is_module_class(entry[0])
        and isinstance(entry[1], dict)
    ):
        return ModuleDeclaration(identifier, entry[0], dict(entry[1]))

    raise InvalidModuleDeclaration(identifier, entry)


def resolve(module_table):
    """Order a module table so every module follows its dependencies.

    Depth-first in declaration order, so modules that do not depend on each
    other keep the order they were declared in.
    """
    declarations = {
        identifier: declare(identifier, entry)
        for identifier, entry in module_table.items()
    }

    for declaration in declarations.values():
        for missing in declaration.dependencies.values():
            if missing not in declarations:
                raise UnknownDependency(declaration.identifier, missing)

    ordered = []
    resolved = set()
    visiting = []

    def visit(identifier):
        if identifier in resolved:
            return
        if identifier in visiting:
            cycle = visiting[visiting.index(identifier):] + [identifier]
            raise CyclicDependency(cycle)

        visiting.append(identifier)
        for dependency in declarations[identifier].dependencies.values():
            visit(dependency)
        visiting.pop()

        resolved.add(identifier)
        ordered.append(declarations[identifier])

    for identifier in declarations:
        visit(identifier)

    return ordered
