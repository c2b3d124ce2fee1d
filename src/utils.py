# -
# #%L
# GitHub Pull Request Action
# %%
# Copyright (C) 2025 Contrast Security, Inc.
# %%
# Contact: support@contrastsecurity.com
# License: Commercial
# NOTICE: This Software and the patented inventions embodied within may only be
# used as part of Contrast Security's commercial offerings. Even though it is
# made available through public repositories, use of this Software is subject to
# the applicable End User Licensing Agreement found at
# https://www.contrastsecurity.com/enduser-terms-0317a or as otherwise agreed
# between Contrast Security and the End User. The Software may not be reverse
# engineered, modified, repackaged, sold, redistributed or otherwise used in a
# way not consistent with the End User License Agreement.
# #L%
#

import os
import subprocess
import sys
import platform
from typing import Optional

# Unicode to ASCII fallback mappings for Windows
UNICODE_FALLBACKS = {
    '\u274c': 'X',  # ❌ -> X
    '❌': 'X',  # ❌ -> X
    '\u2705': '',  # ✅ -> ''
    '\u2728': '*',  # ✨ -> *
    '⚠️': '!',  # ⚠️ -> !
    '🔑': '',    # 🔑 -> ''
    '🚀': '',  # 🚀 -> ''
}

# Values registered through add_mask; never echoed by run_command
_masked_values = set()


def is_debug_mode() -> bool:
    """Debug output is enabled by the action input, DEBUG_MODE, or a runner debug re-run."""
    if os.environ.get("INPUT_DEBUG_MODE", "false").lower() == "true":
        return True
    if os.environ.get("DEBUG_MODE", "false").lower() == "true":
        return True
    return os.environ.get("RUNNER_DEBUG") == "1"


def safe_print(message, file=None, flush=True):
    """Safely print message, handling encoding issues on Windows."""
    try:
        print(message, file=file, flush=flush)
    except UnicodeEncodeError:
        # On Windows, replace Unicode chars with ASCII equivalents
        for unicode_char, ascii_fallback in UNICODE_FALLBACKS.items():
            message = message.replace(unicode_char, ascii_fallback)

        # Replace any remaining problematic Unicode characters with '?'
        if platform.system() == 'Windows':
            message = ''.join([c if ord(c) < 128 else '?' for c in message])

        print(message, file=file, flush=flush)


def redact(message: str) -> str:
    """Replaces every masked value in the message with ***."""
    for value in _masked_values:
        if value and value in message:
            message = message.replace(value, "***")
    return message


def log(message: str, is_error: bool = False, is_warning: bool = False):
    """Prints a message to stdout/stderr."""
    message = redact(message)
    if is_error:
        safe_print(message, file=sys.stderr, flush=True)
    elif is_warning:
        safe_print(f"WARNING: {message}", flush=True)
    else:
        safe_print(message, flush=True)


def debug_log(*args, **kwargs):
    """Prints only if debug mode is enabled."""
    message = " ".join(map(str, args))
    if is_debug_mode():
        safe_print(redact(message), flush=True)


# --- GitHub workflow commands ---

def add_mask(value: str):
    """Registers a secret with the runner so it is masked in all later log output."""
    if not value:
        return
    _masked_values.add(value)
    safe_print(f"::add-mask::{value}", flush=True)


def warning(message: str):
    """Emits a workflow warning annotation."""
    safe_print(f"::warning::{redact(message)}", flush=True)


def start_group(name: str):
    safe_print(f"::group::{name}", flush=True)


def end_group():
    safe_print("::endgroup::", flush=True)


def set_output(name: str, value) -> None:
    """Writes an action output to $GITHUB_OUTPUT (falls back to the legacy set-output command)."""
    if isinstance(value, bool):
        value = "true" if value else "false"
    value = "" if value is None else str(value)

    output_path = os.environ.get("GITHUB_OUTPUT")
    if output_path:
        with open(output_path, "a", encoding="utf-8") as f:
            f.write(f"{name}={value}\n")
    else:
        safe_print(f"::set-output name={name}::{value}", flush=True)
    debug_log(f"Output {name}={value}")


# Define custom exception for command errors
class CommandExecutionError(Exception):
    """Custom exception for errors during command execution."""
    def __init__(self, message, return_code, command, stdout=None, stderr=None):
        super().__init__(message)
        self.return_code = return_code
        self.command = command
        self.stdout = stdout
        self.stderr = stderr


def _execute(command, env=None, cwd=None) -> subprocess.CompletedProcess:
    # Merge with current environment to preserve essential variables like PATH
    full_env = os.environ.copy()
    if env:
        full_env.update(env)

    return subprocess.run(
        command,
        capture_output=True,
        text=True,
        encoding='utf-8',
        errors='replace',
        check=False,  # We'll handle errors ourselves
        env=full_env,
        cwd=cwd
    )


def _log_stream(label: str, text: str, is_error: bool = False):
    if len(text) > 1000:
        text = f"{text[:500]}...\n...{text[-500:]}"
        label = f"{label} (truncated)"
    if is_error:
        log(f"  {label}:\n---\n{text}\n---", is_error=True)
    else:
        debug_log(f"  {label}:\n---\n{text}\n---")


def run_command(command, env=None, check=True, cwd=None):
    """
    Runs a command and returns its stdout.
    Prints command, stdout/stderr based on debug mode.

    Args:
        command: List of command and arguments to run
        env: Optional environment variables dictionary, merged over os.environ
        check: Whether to raise on command failure
        cwd: Optional working directory

    Returns:
        str: Command stdout output

    Raises:
        CommandExecutionError: If check=True and command fails
    """
    command_text = redact(' '.join(command))
    try:
        debug_log(f"::group::Running command: {command_text}")
        debug_log(f"  Options: check={check}, cwd={cwd or os.getcwd()}")

        process = _execute(command, env=env, cwd=cwd)

        debug_log(f"  Return Code: {process.returncode}")
        if process.stdout:
            _log_stream("Command stdout", process.stdout.strip())

        stderr_text = process.stderr.strip() if process.stderr else ""
        if stderr_text:
            # Always surface stderr of failed commands, it usually explains the failure
            _log_stream("Command stderr", stderr_text, is_error=(check and process.returncode != 0))

        if check and process.returncode != 0:
            log(f"Error: Command failed with return code {process.returncode}: {command_text}", is_error=True)
            error_details = stderr_text or "No error output available"
            raise CommandExecutionError(
                message=f"Command '{command_text}' failed with return code {process.returncode}.",
                return_code=process.returncode,
                command=command_text,
                stdout=process.stdout.strip() if process.stdout else None,
                stderr=error_details
            )

        return process.stdout.strip() if process.stdout else ""  # Return stdout or empty string
    finally:
        debug_log("::endgroup::")


def try_run_command(command, env=None, cwd=None) -> bool:
    """Runs a command and reports whether it exited with status 0. Never raises for a non-zero exit."""
    debug_log(f"Running command: {redact(' '.join(command))}")
    process = _execute(command, env=env, cwd=cwd)
    debug_log(f"  Return Code: {process.returncode}")
    return process.returncode == 0


def error_exit(message: str, failure_code: Optional[str] = None):
    """
    Reports a terminal failure and exits with code 1.

    Emits a single ::error:: annotation so the run shows one failure message,
    then exits. Cleanup is expected to run from the caller's finally block.

    Args:
        message: The failure message shown on the workflow run
        failure_code: Optional failure category code, defaults to GENERAL_FAILURE
    """
    from src.errors import FailureCategory

    if not failure_code:
        failure_code = FailureCategory.GENERAL_FAILURE.value

    safe_print(f"::error::{redact(message)}", flush=True)
    debug_log(f"Failure category: {failure_code}")
    sys.exit(1)
