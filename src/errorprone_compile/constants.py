"""Stable constants shared by the argument assembler, probe, and fork logic."""

from __future__ import annotations

import re
from typing import Final

PLUGIN_NAME: Final[str] = "ErrorProne"
EXTENSION_NAME: Final[str] = "errorprone"
PLUGIN_DIRECTIVE: Final[str] = f"-Xplugin:{PLUGIN_NAME}"

# Schema version for errorprone.toml.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Java feature releases gating plugin support and strong encapsulation.
MIN_TOOLCHAIN_VERSION: Final[int] = 11
STRONG_ENCAPSULATION_VERSION: Final[int] = 16

# Boolean toggles in rendering order: later arguments override earlier ones.
FLAG_DISABLE_ALL_CHECKS: Final[str] = "-XepDisableAllChecks"
FLAG_DISABLE_ALL_WARNINGS: Final[str] = "-XepDisableAllWarnings"
FLAG_ALL_ERRORS_AS_WARNINGS: Final[str] = "-XepAllErrorsAsWarnings"
FLAG_ALL_SUGGESTIONS_AS_WARNINGS: Final[str] = "-XepAllSuggestionsAsWarnings"
FLAG_ALL_DISABLED_CHECKS_AS_WARNINGS: Final[str] = "-XepAllDisabledChecksAsWarnings"
FLAG_DISABLE_WARNINGS_IN_GENERATED_CODE: Final[str] = "-XepDisableWarningsInGeneratedCode"
FLAG_IGNORE_UNKNOWN_CHECK_NAMES: Final[str] = "-XepIgnoreUnknownCheckNames"
FLAG_IGNORE_SUPPRESSION_ANNOTATIONS: Final[str] = "-XepIgnoreSuppressionAnnotations"
FLAG_COMPILING_TEST_ONLY_CODE: Final[str] = "-XepCompilingTestOnlyCode"
FLAG_EXCLUDED_PATHS: Final[str] = "-XepExcludedPaths"
FLAG_CHECK_PREFIX: Final[str] = "-Xep:"
FLAG_CHECK_OPTION_PREFIX: Final[str] = "-XepOpt:"

# Always passed alongside the plugin directive. ``addTypeAnnotationsToSymbol`` only
# matters on JDK 21 but is accepted by every supported javac; see
# https://github.com/google/error-prone/issues/5426.
COMPANION_COMPILER_ARGS: Final[tuple[str, ...]] = (
    "-XDcompilePolicy=simple",
    "--should-stop=ifError=FLOW",
    "-XDaddTypeAnnotationsToSymbol=true",
)

JVM_ARGS_STRONG_ENCAPSULATION: Final[tuple[str, ...]] = (
    "--add-exports=jdk.compiler/com.sun.tools.javac.api=ALL-UNNAMED",
    "--add-exports=jdk.compiler/com.sun.tools.javac.file=ALL-UNNAMED",
    "--add-exports=jdk.compiler/com.sun.tools.javac.main=ALL-UNNAMED",
    "--add-exports=jdk.compiler/com.sun.tools.javac.model=ALL-UNNAMED",
    "--add-exports=jdk.compiler/com.sun.tools.javac.parser=ALL-UNNAMED",
    "--add-exports=jdk.compiler/com.sun.tools.javac.processing=ALL-UNNAMED",
    "--add-exports=jdk.compiler/com.sun.tools.javac.tree=ALL-UNNAMED",
    "--add-exports=jdk.compiler/com.sun.tools.javac.util=ALL-UNNAMED",
    "--add-opens=jdk.compiler/com.sun.tools.javac.code=ALL-UNNAMED",
    "--add-opens=jdk.compiler/com.sun.tools.javac.comp=ALL-UNNAMED",
)

# Types whose packages must be exported to unnamed modules.
EXPORT_PROBE_TYPES: Final[tuple[str, ...]] = (
    "com.sun.tools.javac.api.BasicJavacTask",
    "com.sun.tools.javac.api.JavacTrees",
    "com.sun.tools.javac.file.JavacFileManager",
    "com.sun.tools.javac.main.JavaCompiler",
    "com.sun.tools.javac.model.JavacElements",
    "com.sun.tools.javac.parser.JavacParser",
    "com.sun.tools.javac.processing.JavacProcessingEnvironment",
    "com.sun.tools.javac.tree.JCTree",
    "com.sun.tools.javac.util.JCDiagnostic",
)

# Types whose packages must be opened (deep reflection) to unnamed modules.
OPEN_PROBE_TYPES: Final[tuple[str, ...]] = (
    "com.sun.tools.javac.code.Symbol",
    "com.sun.tools.javac.comp.Enter",
)

# Source-set names holding test-only code: ``test``, ``testFixtures``, ``integrationTest``.
TEST_SOURCE_SET_PATTERN: Final[re.Pattern[str]] = re.compile(r"(?:t|.*T)est(?:[^\W\d_a-z].*)?")

COMPILER_MODULE: Final[str] = "jdk.compiler"
ALL_UNNAMED: Final[str] = "ALL-UNNAMED"

TOO_OLD_TOOLCHAIN_ERROR_MESSAGE: Final[str] = (
    f"Must not enable ErrorProne when compiling with JDK < {MIN_TOOLCHAIN_VERSION}"
)

__all__ = [
    "ALL_UNNAMED",
    "COMPANION_COMPILER_ARGS",
    "COMPILER_MODULE",
    "CONFIG_SCHEMA_VERSION",
    "EXPORT_PROBE_TYPES",
    "EXTENSION_NAME",
    "FLAG_ALL_DISABLED_CHECKS_AS_WARNINGS",
    "FLAG_ALL_ERRORS_AS_WARNINGS",
    "FLAG_ALL_SUGGESTIONS_AS_WARNINGS",
    "FLAG_CHECK_OPTION_PREFIX",
    "FLAG_CHECK_PREFIX",
    "FLAG_COMPILING_TEST_ONLY_CODE",
    "FLAG_DISABLE_ALL_CHECKS",
    "FLAG_DISABLE_ALL_WARNINGS",
    "FLAG_DISABLE_WARNINGS_IN_GENERATED_CODE",
    "FLAG_EXCLUDED_PATHS",
    "FLAG_IGNORE_SUPPRESSION_ANNOTATIONS",
    "FLAG_IGNORE_UNKNOWN_CHECK_NAMES",
    "JVM_ARGS_STRONG_ENCAPSULATION",
    "MIN_TOOLCHAIN_VERSION",
    "OPEN_PROBE_TYPES",
    "PLUGIN_DIRECTIVE",
    "PLUGIN_NAME",
    "STRONG_ENCAPSULATION_VERSION",
    "TEST_SOURCE_SET_PATTERN",
    "TOO_OLD_TOOLCHAIN_ERROR_MESSAGE",
]
