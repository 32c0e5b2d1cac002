"""
Self-protection detection.

Flags repositories that represent the managing system itself so bulk
automation never deactivates it. Rules are pure predicates evaluated in
order; the first match wins.
"""

from pathlib import PurePosixPath
from typing import Callable, Optional

from ..config.defaults import ProtectionParams

Rule = Callable[[str, Optional[str], ProtectionParams], bool]


def matches_installed_path(identifier: str, installed_file: Optional[str],
                           params: ProtectionParams) -> bool:
    """The installed file lives in the system's own directory."""
    if not installed_file or not params.system_dir:
        return False
    return PurePosixPath(installed_file).parent.as_posix() == params.system_dir


def matches_name_fragment(identifier: str, installed_file: Optional[str],
                          params: ProtectionParams) -> bool:
    lowered = identifier.lower()
    return any(fragment in lowered for fragment in params.name_fragments)


def matches_code_name(identifier: str, installed_file: Optional[str],
                      params: ProtectionParams) -> bool:
    """Code name plus one of its companion keywords."""
    lowered = identifier.lower()
    if params.code_name_fragment not in lowered:
        return False
    return any(word in lowered for word in params.code_name_companions)


def matches_exact_identifier(identifier: str, installed_file: Optional[str],
                             params: ProtectionParams) -> bool:
    lowered = identifier.lower()
    return any(
        identifier == exact or lowered == exact.lower()
        for exact in params.exact_identifiers
    )


RULES: tuple[tuple[str, Rule], ...] = (
    ("installed_path", matches_installed_path),
    ("name_fragment", matches_name_fragment),
    ("code_name", matches_code_name),
    ("exact_identifier", matches_exact_identifier),
)


class SelfProtectionDetector:
    """Evaluates the protection rules against a repository."""

    def __init__(self, params: Optional[ProtectionParams] = None):
        self.params = params or ProtectionParams()

    def matching_rule(self, identifier: str, installed_file: Optional[str] = None) -> Optional[str]:
        """Name of the first rule that matches, or None."""
        for name, rule in RULES:
            if rule(identifier, installed_file, self.params):
                return name
        return None

    def is_self(self, identifier: str, installed_file: Optional[str] = None) -> bool:
        return self.matching_rule(identifier, installed_file) is not None
