"""Application controller."""

from .controller import AppController, EditDraft

__all__ = ["AppController", "EditDraft"]
