"""Saving and loading trained networks.

A network file holds both the graph description and the weights, so a
network can be rebuilt from it alone. Two formats are supported, chosen by
file extension:
- .safetensors: the state dict as tensors, the NnetConfig as JSON in the
  file metadata
- anything else (.pt, .mdl): a torch file holding {"config", "state_dict"}
"""
from __future__ import annotations

import json
from pathlib import Path

import torch
from safetensors import safe_open
from safetensors.torch import load_file, save_file
from torch import Tensor

from nnetrain.config.nnet import NnetConfig
from nnetrain.nnet import Nnet

CONFIG_METADATA_KEY = "nnet_config"


def _safe_torch_load(path: Path) -> object:
    """Load a torch file without unpickling arbitrary objects."""
    return torch.load(path, map_location="cpu", weights_only=True)


def _state_dict(nnet: Nnet) -> dict[str, Tensor]:
    return {k: v.detach().cpu().contiguous() for k, v in nnet.state_dict().items()}


def save_nnet(path: Path, nnet: Nnet) -> None:
    """Write the network's config and weights to `path`."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    config = nnet.config.model_dump(mode="json")
    if path.suffix == ".safetensors":
        save_file(
            _state_dict(nnet),
            str(path),
            metadata={CONFIG_METADATA_KEY: json.dumps(config)},
        )
    else:
        torch.save({"config": config, "state_dict": _state_dict(nnet)}, path)


def load_nnet(path: Path) -> Nnet:
    """Rebuild a network saved by save_nnet.

    Raises:
        ValueError: If the file holds no network config or the weights do not
            match it.
    """
    path = Path(path)
    if path.suffix == ".safetensors":
        with safe_open(str(path), framework="pt") as f:
            metadata = f.metadata() or {}
        raw = metadata.get(CONFIG_METADATA_KEY)
        if raw is None:
            raise ValueError(f"{path} has no {CONFIG_METADATA_KEY!r} metadata")
        config = NnetConfig.model_validate(json.loads(raw))
        state_dict = load_file(str(path), device="cpu")
    else:
        payload = _safe_torch_load(path)
        if not isinstance(payload, dict) or "config" not in payload or "state_dict" not in payload:
            raise ValueError(f"{path} is not a network file")
        config = NnetConfig.model_validate(payload["config"])
        state_dict = payload["state_dict"]

    nnet = Nnet(config)
    try:
        nnet.load_state_dict(state_dict, strict=True)
    except RuntimeError as e:
        raise ValueError(f"load failed: {e}") from e
    return nnet
