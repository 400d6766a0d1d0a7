from .cli import BenchCLI

__all__ = ["BenchCLI"]
