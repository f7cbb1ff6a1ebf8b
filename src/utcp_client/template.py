"""Variable substitution for UTCP call templates.

${NAME} placeholders are filled from the manual's variables first and
the process environment second. A template either resolves completely
or fails; a half-substituted string is never returned.
"""

import json
import os
import re
from typing import Any, Mapping, Optional

from shared.errors import SubstitutionError

VARIABLE_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class TemplateProcessor:
    """Resolves ${NAME} placeholders against manual and environment variables."""

    def __init__(
        self,
        variables: Optional[Mapping[str, str]] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> None:
        """
        Args:
            variables: Manual-scoped variables; these win over the environment
            environ: Environment to fall back on, os.environ when omitted
        """
        self.variables = dict(variables or {})
        self._environ = environ

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def get_variable(self, name: str) -> Optional[str]:
        if name in self.variables:
            return self.variables[name]
        return self.environ.get(name)

    def substitute(self, template: str) -> str:
        """
        Replace every ${NAME} in the template.

        Values are inserted as-is and not scanned again.

        Raises:
            SubstitutionError: Naming the first variable that has no value
        """
        values: dict[str, str] = {}
        for name in VARIABLE_PATTERN.findall(template):
            if name in values:
                continue
            value = self.get_variable(name)
            if value is None:
                raise SubstitutionError(name, template)
            values[name] = value

        if not values:
            return template
        return VARIABLE_PATTERN.sub(lambda m: values[m.group(1)], template)

    def substitute_map(self, mapping: Mapping[str, str]) -> dict[str, str]:
        """Substitute every value of a mapping; keys are left alone."""
        return {key: self.substitute(value) for key, value in mapping.items()}


def stringify_argument(value: Any) -> str:
    """Strings verbatim, any other JSON value as compact JSON text."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


def substitute_arguments(template: str, arguments: Optional[Mapping[str, Any]]) -> str:
    """
    Replace {argName} placeholders with call-time argument values.

    Placeholders with no matching argument are left untouched.
    """
    if not arguments:
        return template

    result = template
    for key, value in arguments.items():
        placeholder = "{" + key + "}"
        if placeholder in result:
            result = result.replace(placeholder, stringify_argument(value))
    return result
