"""Command-line interface for nnetrain.

Commands:
- train: one pass of minibatch training over an examples file
- compile: build the computation for an examples file and optionally print it
- egs: convert numpy archives into an examples file

Networks are read either from a config (.yaml, .yml, .json), which builds a
freshly initialized network, or from a file written by a previous `train`.
"""
from __future__ import annotations

import argparse
from pathlib import Path

import torch

from nnetrain.command import Command, CompileCommand, EgsCommand, TrainCommand
from nnetrain.compiler import Compiler, get_computation_request
from nnetrain.config.nnet import NnetConfig
from nnetrain.config.train import TrainerConfig
from nnetrain.console import logger
from nnetrain.data import EgsDataset, EgsReader, EgsWriter, compress_example, examples_from_npz
from nnetrain.loader import load_nnet, save_nnet
from nnetrain.nnet import Nnet
from nnetrain.supervision import CompressionMethod
from nnetrain.trainer import NnetTrainer

CONFIG_SUFFIXES = (".yaml", ".yml", ".json")


class _Args(argparse.Namespace):
    """Typed namespace for CLI arguments."""

    command: str | None = None
    nnet: Path | None = None
    egs: Path | None = None
    nnet_out: Path | None = None
    config: Path | None = None
    print_interval: int | None = None
    store_component_stats: bool = False
    zero_component_stats: bool = True
    seed: int = 0
    print_plan: bool = False
    npz: Path | None = None
    egs_out: Path | None = None
    compress: str | None = None


class CLI(argparse.ArgumentParser):
    """Command-line interface with one subcommand per task."""

    def __init__(self) -> None:
        super().__init__(
            prog="nnetrain",
            description="nnetrain - minibatch training for feed-forward networks.",
        )

        _ = self.add_argument(
            "--version",
            action="version",
            version="%(prog)s 0.1.0",
            help="Show the version and exit.",
        )

        subparsers = self.add_subparsers(
            dest="command",
            parser_class=argparse.ArgumentParser,
        )

        # Train command
        train_parser = subparsers.add_parser(
            "train",
            help="Train a network for one pass over an examples file.",
        )
        _ = train_parser.add_argument(
            "nnet",
            type=Path,
            help="Network config (.yaml, .yml, .json) or saved network.",
        )
        _ = train_parser.add_argument("egs", type=Path, help="Examples file.")
        _ = train_parser.add_argument(
            "nnet_out",
            type=Path,
            help="Where to write the trained network (.safetensors or torch file).",
        )
        _ = train_parser.add_argument(
            "--config",
            type=Path,
            default=None,
            help="Trainer config (.yaml, .yml, .json). Flags below override it.",
        )
        _ = train_parser.add_argument(
            "--print-interval",
            type=int,
            default=None,
            dest="print_interval",
            help="Minibatches per objective report.",
        )
        _ = train_parser.add_argument(
            "--store-component-stats",
            action="store_true",
            default=False,
            dest="store_component_stats",
            help="Accumulate activation statistics in nonlinear components.",
        )
        _ = train_parser.add_argument(
            "--no-zero-component-stats",
            action="store_false",
            default=True,
            dest="zero_component_stats",
            help="Keep previously stored component statistics.",
        )
        _ = train_parser.add_argument(
            "--seed",
            type=int,
            default=0,
            help="Random seed for network initialization.",
        )

        # Compile command
        compile_parser = subparsers.add_parser(
            "compile",
            help="Compile the computation for the first example, without running it.",
        )
        _ = compile_parser.add_argument("nnet", type=Path, help="Network config or saved network.")
        _ = compile_parser.add_argument("egs", type=Path, help="Examples file.")
        _ = compile_parser.add_argument(
            "--print-plan",
            action="store_true",
            default=False,
            dest="print_plan",
            help="Print the compiled computation.",
        )

        # Egs command
        egs_parser = subparsers.add_parser(
            "egs",
            help="Convert a numpy archive (.npz) into an examples file.",
        )
        _ = egs_parser.add_argument("npz", type=Path, help="Numpy archive.")
        _ = egs_parser.add_argument("egs_out", type=Path, help="Examples file to write.")
        _ = egs_parser.add_argument(
            "--compress",
            type=str,
            default=None,
            choices=[m.value for m in CompressionMethod],
            help="Compress full matrices with the given method.",
        )

    def _trainer_config(self, args: _Args) -> TrainerConfig:
        """Load the trainer config and apply command-line overrides."""
        config = TrainerConfig.from_path(args.config) if args.config else TrainerConfig()
        overrides: dict[str, object] = {}
        if args.print_interval is not None:
            overrides["print_interval"] = args.print_interval
        if args.store_component_stats:
            overrides["store_component_stats"] = True
        if not args.zero_component_stats:
            overrides["zero_component_stats"] = False
        if not overrides:
            return config
        return TrainerConfig.model_validate({**config.model_dump(), **overrides})

    def parse_command(self, argv: list[str] | None = None) -> Command:
        """Parse CLI arguments into a typed command payload."""
        args = self.parse_args(argv, namespace=_Args())

        match args.command:
            case "train":
                if args.nnet is None or args.egs is None or args.nnet_out is None:
                    raise ValueError("train requires NNET, EGS and NNET_OUT.")
                return TrainCommand(
                    nnet=args.nnet,
                    egs=args.egs,
                    nnet_out=args.nnet_out,
                    config=self._trainer_config(args),
                    seed=int(args.seed),
                )
            case "compile":
                if args.nnet is None or args.egs is None:
                    raise ValueError("compile requires NNET and EGS.")
                return CompileCommand(
                    nnet=args.nnet,
                    egs=args.egs,
                    print_plan=bool(args.print_plan),
                )
            case "egs":
                if args.npz is None or args.egs_out is None:
                    raise ValueError("egs requires NPZ and EGS_OUT.")
                return EgsCommand(
                    npz=args.npz,
                    egs_out=args.egs_out,
                    compress=CompressionMethod(args.compress) if args.compress else None,
                )
            case None:
                raise ValueError("No command given. Use one of: train, compile, egs.")
            case _:
                raise ValueError(f"Invalid command: {args.command}")


def load_network(path: Path) -> Nnet:
    """Build a network from a config file or load a saved one."""
    if path.suffix in CONFIG_SUFFIXES:
        return Nnet(NnetConfig.from_path(path))
    return load_nnet(path)


def run_train(cmd: TrainCommand) -> int:
    """Train for one pass; exit status 0 iff some output had nonzero weight."""
    torch.manual_seed(cmd.seed)
    nnet = load_network(cmd.nnet)
    dataset = EgsDataset(cmd.egs)
    logger.header("Training", f"{len(dataset)} minibatches")
    logger.key_value(
        {
            "print_interval": cmd.config.print_interval,
            "store_component_stats": cmd.config.store_component_stats,
            "zero_component_stats": cmd.config.zero_component_stats,
        },
        title="Trainer",
    )

    trainer = NnetTrainer(cmd.config, nnet)
    with logger.progress_bar() as progress:
        task = progress.add_task("Training...", total=len(dataset))
        for i in range(len(dataset)):
            trainer.train(dataset[i])
            progress.update(task, advance=1)

    ok = trainer.print_total_stats()
    save_nnet(cmd.nnet_out, nnet)
    logger.path(str(cmd.nnet_out), "network")
    if not ok:
        logger.warning("No output received any weight.")
        return 1
    logger.success("Training complete")
    return 0


def run_compile(cmd: CompileCommand) -> int:
    nnet = load_network(cmd.nnet)
    examples = EgsReader().read(cmd.egs)
    if not examples:
        raise ValueError(f"{cmd.egs} holds no examples")
    request = get_computation_request(
        nnet, examples[0], need_model_derivative=True, store_component_stats=False
    )
    compiler = Compiler(nnet)
    computation = compiler.compile(request)
    if cmd.print_plan:
        logger.key_value(nnet.info(), title="Network")
        logger.log(compiler.planner.format(computation))
    logger.success(f"Computation compiled: {computation.num_steps} steps")
    return 0


def run_egs(cmd: EgsCommand) -> int:
    examples = examples_from_npz(cmd.npz)
    if cmd.compress is not None:
        method = cmd.compress
        examples = [compress_example(eg, method) for eg in examples]
    count = EgsWriter().write(cmd.egs_out, examples)
    logger.success(f"Wrote {count} examples")
    logger.path(str(cmd.egs_out), "examples")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns exit code (0 for success, non-zero for failure).
    """
    cli = CLI()

    try:
        command = cli.parse_command(argv)

        match command:
            case TrainCommand() as cmd:
                return run_train(cmd)
            case CompileCommand() as cmd:
                return run_compile(cmd)
            case EgsCommand() as cmd:
                return run_egs(cmd)

    except Exception as e:
        logger.error(f"Error: {e}")
        return 1
    return 1


if __name__ == "__main__":
    import sys

    sys.exit(main())
