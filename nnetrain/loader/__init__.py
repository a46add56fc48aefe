"""Network files: config and weights together, as safetensors or torch files."""
from __future__ import annotations

from nnetrain.loader.checkpoint import load_nnet, save_nnet

__all__ = ["load_nnet", "save_nnet"]
