"""
CommandRegistry - Explicit command registration pattern

Bounded Context: Command registration and validation
Responsibilities:
  - Register editor commands with handlers
  - Validate command existence and required fields before execution
  - Provide introspection (available_commands, get_help)

Threading: Thread-safe (uses lock for write operations)
Pattern: Registry with explicit registration
"""

import threading
from typing import Any, Callable, Dict, Iterable, Optional, Set


class CommandNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered command"""
    pass


class CommandArgumentError(ValueError):
    """Raised when a command payload lacks a required field"""
    pass


CommandHandler = Callable[[Dict[str, Any]], Any]


class CommandRegistry:
    """
    Registry for MQTT commands with explicit registration.

    Handlers always receive the full JSON payload (a dict).

    Example:
        registry = CommandRegistry()
        registry.register('undo', lambda data: editor.undo(), "Undo last change")
        registry.register('select', on_select, "Select a boundary", required=('boundary_id',))

        registry.execute('select', {'command': 'select', 'boundary_id': 'b1'})
    """

    def __init__(self):
        self._commands: Dict[str, CommandHandler] = {}
        self._descriptions: Dict[str, str] = {}
        self._required: Dict[str, tuple] = {}
        self._lock = threading.Lock()

    def register(
        self,
        command: str,
        handler: CommandHandler,
        description: str,
        required: Iterable[str] = (),
    ) -> None:
        """
        Register a command with its handler function.

        Args:
            command: Command name (lowercase, no spaces)
            handler: Callable taking the command payload
            description: Human-readable description for help text
            required: Payload fields that must be present

        Raises:
            ValueError: If command already registered (double registration)
        """
        with self._lock:
            if command in self._commands:
                raise ValueError(f"Command '{command}' already registered")

            self._commands[command] = handler
            self._descriptions[command] = description
            self._required[command] = tuple(required)

    def execute(self, command: str, command_data: Optional[Dict[str, Any]] = None) -> Any:
        """
        Execute a registered command.

        Returns:
            Whatever the handler returns

        Raises:
            CommandNotAvailableError: If command not registered
            CommandArgumentError: If a required payload field is missing
        """
        if command not in self._commands:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self.available_commands))}"
            )

        command_data = command_data or {}
        missing = [f for f in self._required[command] if command_data.get(f) is None]
        if missing:
            raise CommandArgumentError(
                f"Command '{command}' requires: {', '.join(missing)}"
            )

        return self._commands[command](command_data)

    def is_available(self, command: str) -> bool:
        return command in self._commands

    @property
    def available_commands(self) -> Set[str]:
        """Snapshot of all registered commands."""
        return set(self._commands.keys())

    def get_help(self) -> Dict[str, str]:
        """Snapshot of commands with descriptions."""
        return dict(self._descriptions)

    def count(self) -> int:
        return len(self._commands)
