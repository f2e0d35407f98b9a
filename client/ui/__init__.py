from .cli import ChatCLI
from .console import ChatConsole
from .keyboard import KeyReader

__all__ = ["ChatCLI", "ChatConsole", "KeyReader"]
