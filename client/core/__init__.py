from .driver import BenchmarkDriver
from .network import NetworkClient
from .report import BenchmarkReport, SizeResult
from .transfer import TransferSample, transfer

__all__ = ["BenchmarkDriver", "NetworkClient", "BenchmarkReport", "SizeResult", "TransferSample", "transfer"]
