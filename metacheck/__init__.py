"""Reconcile Solidity compiler metadata with the source files it declares."""

from .contract import CheckedContract
from .metadata import NoMetadataFoundError
from .models import CandidateFile
from .orchestrator import Orchestrator

__all__ = ["CandidateFile", "CheckedContract", "NoMetadataFoundError", "Orchestrator"]
