"""Host-facing argument providers for the compiler and the forked compiler JVM."""

from __future__ import annotations

from collections.abc import Callable

from errorprone_compile.constants import COMPANION_COMPILER_ARGS, EXTENSION_NAME
from errorprone_compile.encapsulation import jvm_arguments
from errorprone_compile.options import ErrorProneOptions, plugin_directive
from errorprone_compile.toolchain import ToolchainDescriptor


class ErrorProneCompilerArgumentProvider:
    """Contributes ``-Xplugin:ErrorProne ...`` and its companion ``javac`` flags."""

    name = EXTENSION_NAME

    def __init__(self, options: ErrorProneOptions) -> None:
        self._options = options

    def as_arguments(self) -> list[str]:
        if not self._options.enabled:
            return []
        return [plugin_directive(self._options.render()), *COMPANION_COMPILER_ARGS]


class ErrorProneJvmArgumentProvider:
    """Contributes strong encapsulation grants to the forked compiler JVM."""

    name = EXTENSION_NAME

    def __init__(
        self,
        options: ErrorProneOptions,
        toolchain: Callable[[], ToolchainDescriptor],
    ) -> None:
        self._options = options
        self._toolchain = toolchain

    def as_arguments(self) -> list[str]:
        if not self._options.enabled:
            return []
        return jvm_arguments(True, self._toolchain())


__all__ = ["ErrorProneCompilerArgumentProvider", "ErrorProneJvmArgumentProvider"]
