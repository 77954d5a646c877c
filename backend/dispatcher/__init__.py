"""
igotifier Dispatcher Package.

Shell command execution for settled change bursts.
Requires Python 3.11+.
"""

from dispatcher.command_runner import CommandDispatcher, CommandResult, run_shell

__all__ = ["CommandDispatcher", "CommandResult", "run_shell"]
