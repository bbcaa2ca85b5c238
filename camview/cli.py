"""
Command-line interface for camera calibration scene composition.

Usage:
    camview [--model NAME] [--zone N] [--models-dir DIR] [--output-dir DIR]
"""

import argparse
import logging
import sys
from typing import List, Optional

from .calibration import load_calibration
from .car_model import list_models, load_car_model
from .config import DEFAULT_MODEL, DEFAULT_MODELS_DIR, SessionConfig
from .errors import CamviewError
from .report import format_calibration, format_scene, write_reports
from .scene import compose_scene
from .scene_graph import build_scene_graph, describe_graph
from .viewing_zones import ZONE_COUNT, load_viewing_zones


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def zone_number(value: str) -> int:
    """argparse type for a zone id in 1..ZONE_COUNT."""
    try:
        zone = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid zone number '{value}'")
    if not 1 <= zone <= ZONE_COUNT:
        raise argparse.ArgumentTypeError(f"Zone number must be between 1 and {ZONE_COUNT}")
    return zone


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Compose a camera calibration scene: camera centre, frustum '
                    'and viewing zones over a vehicle model',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
    # All zones for the default model
    camview

    # Only zone 9
    camview --zone 9

    # Another model, with JSON/CSV reports
    camview --model Touran --output-dir ./results
'''
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default=None,
        help='YAML session file; command-line options override its values'
    )
    parser.add_argument(
        '--models-dir',
        type=str,
        default=None,
        help=f'Models directory (default: {DEFAULT_MODELS_DIR})'
    )
    parser.add_argument(
        '--model', '-m',
        type=str,
        default=None,
        help=f'Model name in the registry (default: {DEFAULT_MODEL})'
    )
    parser.add_argument(
        '--zone', '-z',
        type=zone_number,
        default=None,
        help=f'Display only the specified zone (1-{ZONE_COUNT})'
    )
    parser.add_argument('--registry', type=str, default=None,
                        help='Models registry file override')
    parser.add_argument('--calibration', type=str, default=None,
                        help='Calibration file override')
    parser.add_argument('--zones', type=str, default=None,
                        help='Viewing zones file override')
    parser.add_argument(
        '--output-dir', '-o',
        type=str,
        default=None,
        help='Write scene_report.json and zones.csv to this directory'
    )
    parser.add_argument(
        '--list-models',
        action='store_true',
        help='List the models in the registry and exit'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )
    return parser


def session_from_args(args: argparse.Namespace) -> SessionConfig:
    """Merge a session file (if any) with command-line overrides."""
    session = SessionConfig.from_yaml(args.config) if args.config else SessionConfig()
    for name in ('models_dir', 'model', 'zone', 'registry', 'calibration', 'zones', 'output_dir'):
        value = getattr(args, name)
        if value is not None:
            setattr(session, name, value)
    return session


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        session = session_from_args(args)
        paths = session.paths()

        if args.list_models:
            for name in list_models(paths.registry):
                print(name)
            return 0

        car_model = load_car_model(paths.registry, session.model)
        calibration = load_calibration(paths.calibration, model_name=session.model)
        zones = load_viewing_zones(paths.zones)

        scene = compose_scene(calibration, car_model, zones, zone_filter=session.zone)
        root = build_scene_graph(scene, car_model)

        print("\n" + "=" * 60)
        print(f"CAMERA CALIBRATION: {car_model.name}")
        print("=" * 60)
        print(format_calibration(calibration))
        print()
        print(format_scene(scene, zones))
        print()
        print("Scene Graph Structure:")
        print(describe_graph(root))
        print("=" * 60)

        if session.output_dir:
            written = write_reports(scene, calibration, zones, session.output_dir)
            logger.info(f"Wrote {', '.join(str(p) for p in written)}")

        return 0

    except CamviewError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
