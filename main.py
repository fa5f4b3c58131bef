#!/usr/bin/env python
"""
Particle Baker CLI - bake particle effects into skeletal animations

Usage:
    python main.py bake <config> [options]
    python main.py preset <name> -o <config>

Examples:
    python main.py bake effect.yaml                  # Writes effect.zip
    python main.py bake effect.yaml -o out/fx.zip    # Custom output path
    python main.py bake effect.json --seed 7         # Reproducible bake
    python main.py bake effect.yaml --json-only      # Only the animation JSON
    python main.py preset smoke -o smoke.yaml        # Start from a preset
    python main.py --list-presets                    # Show all presets
"""

import argparse
import logging
import sys
from pathlib import Path


def configure_logging(verbose: bool = False) -> None:
    """Single stream handler on the package logger"""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger = logging.getLogger("particle_baker")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bake particle effects into skeletal animations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Emission Types:
  continuous  - Steady stream at rate x rate_over_time
  burst       - burst_count particles every burst_interval
  duration    - Continuous, only between duration_start and duration_end

Exported Animations:
  loop_<name>       - Looping continuous emitter
  prewarm_<name>    - Steady-state intro for prewarmed loops
  animation_<name>  - Non-looping continuous emitter
  burst_<name>      - Burst emitter
  duration_<name>   - Duration emitter (keeps absolute timing)
        """
    )

    parser.add_argument(
        '--list-presets',
        action='store_true',
        help='List built-in presets and exit'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Debug logging and tracebacks on error'
    )

    sub = parser.add_subparsers(dest='command')

    bake_cmd = sub.add_parser('bake', help='Bake an effect config into an export archive')
    bake_cmd.add_argument(
        'config',
        type=str,
        help='Effect config (.yaml, .yml or .json)'
    )
    bake_cmd.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output path (default: config name with .zip, or .json with --json-only)'
    )
    bake_cmd.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for a reproducible bake'
    )
    bake_cmd.add_argument(
        '--json-only',
        action='store_true',
        help='Write only the animation JSON, no atlas or archive'
    )
    bake_cmd.add_argument(
        '--name',
        type=str,
        default='particle',
        help='Base name of files inside the archive (default: particle)'
    )

    preset_cmd = sub.add_parser('preset', help='Write a built-in preset as a config file')
    preset_cmd.add_argument(
        'name',
        type=str,
        help='Preset name (see --list-presets)'
    )
    preset_cmd.add_argument(
        '-o', '--output',
        type=str,
        required=True,
        help='Config path to write (.yaml, .yml or .json)'
    )

    # Accept -v after the subcommand too, without clobbering a leading -v
    for cmd in (bake_cmd, preset_cmd):
        cmd.add_argument(
            '-v', '--verbose',
            action='store_true',
            default=argparse.SUPPRESS,
            help='Debug logging and tracebacks on error'
        )

    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    configure_logging(args.verbose)

    from particle_baker.core.config import BUILTIN_PRESETS, get_preset, list_presets, load_settings, save_settings

    if args.list_presets:
        print("\nBuilt-in presets:\n")
        for name in list_presets():
            print(f"  {name:<14} {BUILTIN_PRESETS[name].get('description', '')}")
        print()
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == 'preset':
            path = save_settings(get_preset(args.name), args.output)
            print(f"Output: {path}")
            return

        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {args.config}")
            sys.exit(1)

        settings = load_settings(config_path)
        print(f"Loaded: {config_path} ({len(settings.emitters)} emitter(s), "
              f"{settings.duration}s @ {settings.fps} fps)")

        if args.json_only:
            from particle_baker import bake, generate_document_json

            output = Path(args.output or config_path.with_suffix('.json'))
            document = generate_document_json(bake(settings, seed=args.seed), settings)
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(document)
        else:
            from particle_baker import export_effect

            output = Path(args.output or config_path.with_suffix('.zip'))
            export_effect(settings, output, seed=args.seed, name=args.name)

        print(f"Output: {output}")
        print("Done!")

    except Exception as e:
        print(f"Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
