# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-language environment provisioners."""

from __future__ import annotations

from .base import EnvironmentProvisioner, IdentityLocks, LanguageSpec, SetupRequest
from .conda import CondaProvisioner
from .coursier import CoursierProvisioner
from .dart import DartProvisioner
from .dotnet import DotnetProvisioner
from .node import NodeProvisioner
from .perl import PerlProvisioner
from .python import PythonProvisioner
from .r import RProvisioner
from .ruby import RubyProvisioner
from .rust import RustProvisioner

__all__ = [
    "CondaProvisioner",
    "CoursierProvisioner",
    "DartProvisioner",
    "DotnetProvisioner",
    "EnvironmentProvisioner",
    "IdentityLocks",
    "LanguageSpec",
    "NodeProvisioner",
    "PerlProvisioner",
    "PythonProvisioner",
    "RProvisioner",
    "RubyProvisioner",
    "RustProvisioner",
    "SetupRequest",
]
