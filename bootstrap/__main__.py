# warmstart/bootstrap/__main__.py
import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='python -m bootstrap', description='Run a headless warmstart bootstrap.')
    parser.add_argument('--config', action='append', default=[], metavar='FILE', help='Extra YAML config layered on top (repeatable).')
    parser.add_argument('--env', default=None, help='Config environment under configs/<env>/.')
    parser.add_argument('--force', action='store_true', help='Run bootstrap a second time with force, as a reload would.')
    parser.add_argument('--immediate', action='store_true', help='Drain deferred tasks right after startup.')
    parser.add_argument('--verbose', action='store_true', help='Log every hook and task attempt.')
    parser.add_argument('--version', action='store_true', help='Print the version and exit.')
    return parser.parse_args(argv)


def main_cli_entry(argv=None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    if args.version:
        from . import __version__
        print(f'warmstart {__version__}')
        return 0

    for path in args.config:
        if not Path(path).exists():
            print(f'Error: Configuration file not found: {path}')
            return 1

    overrides = {'startup': {}}
    if args.immediate:
        overrides['startup']['load_immediately'] = True
    if args.verbose:
        overrides['startup']['verbose'] = True

    from .bootstrap import bootstrap_from_config
    from .exceptions import BootstrapConfigurationError, BootstrapError

    try:
        bootstrapper = bootstrap_from_config(env=args.env, config_paths=args.config, overrides=overrides)
        if args.force:
            bootstrapper.bootstrap(force=True)
        bootstrapper.startup_complete()
        bootstrapper.window_setup()
        scheduler = bootstrapper.context.scheduler
        if hasattr(scheduler, 'run_until_idle'):
            scheduler.run_until_idle()
    except KeyboardInterrupt:
        print('\nBootstrap interrupted by user')
        return 130
    except BootstrapConfigurationError as e:
        print(f'Error: {e}')
        return 1
    except BootstrapError as e:
        logger.error('Bootstrap failed: %s', e)
        print(f'\nFATAL BOOTSTRAP ERROR: {e}')
        return 2

    result = bootstrapper.last_result
    summary = result.get_summary()
    print('\n=== Bootstrap Summary ===')
    print(f"Success: {summary['success']}")
    print(f"Host context: {summary['host_context']}")
    print(f"Init time: {summary['init_time']:.3f}s")
    if summary['failed_phases']:
        print(f"Failed phases: {', '.join(summary['failed_phases'])}")
        for error in result.errors:
            print(f'  - {error}')
    print(f"Deferred tasks: {bootstrapper.context.loader.get_stats()}")
    return 0 if result.success else 1


if __name__ == '__main__':
    sys.exit(main_cli_entry())
