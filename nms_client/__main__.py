"""
Command line entry point.

Usage:
    python -m nms_client status
    python -m nms_client sync [--retry-failed]
    python -m nms_client watch [--interval 30]
    python -m nms_client fetch feeders --param region=3 [--force]
"""
import argparse
import json
import logging
import sys
import time

from .api import ApiClient, ApiError
from .config import ClientConfig
from .connectivity import ConnectivityMonitor
from .data_service import ENTITY_ENDPOINTS, DataService
from .load_monitoring import LoadMonitoringOfflineService
from .store import OfflineStore
from .sync import SyncManager

logger = logging.getLogger('nms_client')


def build_parser():
    parser = argparse.ArgumentParser(prog='nms_client', description='NMS offline client')
    parser.add_argument('--env-file', help='Path to a .env file with NMS_* settings')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('status', help='Show backend health and offline queue statistics')

    sync_parser = subparsers.add_parser('sync', help='Push queued offline work to the backend')
    sync_parser.add_argument('--retry-failed', action='store_true', help='Requeue failed items first')

    watch_parser = subparsers.add_parser('watch', help='Poll the backend and sync whenever it comes online')
    watch_parser.add_argument('--interval', type=int, help='Seconds between health checks')

    fetch_parser = subparsers.add_parser('fetch', help='Print an entity list, using the offline cache when the backend is down')
    fetch_parser.add_argument('entity', choices=sorted(ENTITY_ENDPOINTS))
    fetch_parser.add_argument('--param', action='append', default=[], metavar='KEY=VALUE',
                              help='Query parameter, may be repeated')
    fetch_parser.add_argument('--force', action='store_true', help='Skip the cache')
    return parser


def run_status(api, store):
    print(json.dumps({'health': api.check_health(), 'queue': store.get_stats(), 'cache': store.cache_info()}, indent=2))
    return 0


def run_sync(api, store, retry_failed=False):
    manager = SyncManager(store, api)
    manager.online = api.check_health()['is_healthy']
    if not manager.online:
        print('✗ Backend is not reachable, nothing synced')
        return 1
    if retry_failed:
        print(f'Requeued {manager.retry_failed()} failed item(s)')
    summary = manager.start_sync()
    load_summary = LoadMonitoringOfflineService(store, api).sync_pending()
    print(f"✓ Inspections and photos: {summary['synced']} synced, {summary['failed']} failed, "
          f"{summary['remaining']} remaining")
    print(f"✓ Load monitoring: {load_summary['synced']} synced, {load_summary['failed']} failed, "
          f"{load_summary['dropped']} dropped")
    return 0 if not summary['failed'] and not load_summary['failed'] else 1


def parse_params(pairs):
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition('=')
        if not sep or not key:
            raise ValueError(f"Invalid parameter '{pair}', expected KEY=VALUE")
        params[key] = value
    return params


def run_fetch(api, store, entity, params, max_age, force=False):
    try:
        data = DataService(api, store).fetch(entity, params or None, max_age=max_age, force=force)
    except ApiError as e:
        print(f'✗ {e.message}')
        return 1
    print(json.dumps(data, indent=2, default=str))
    return 0


def run_watch(api, store, interval):
    manager = SyncManager(store, api)
    monitor = ConnectivityMonitor(api, manager, interval=interval)
    monitor.on_change(lambda online: print('✓ Online' if online else '✗ Offline'))
    monitor.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print('Stopping')
    finally:
        monitor.stop()
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    params = {}
    if args.command == 'fetch':
        try:
            params = parse_params(args.param)
        except ValueError as e:
            parser.error(str(e))
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='{asctime} [{levelname}] {name}: {message}',
        style='{',
    )
    config = ClientConfig.from_env(args.env_file)
    api = ApiClient.from_config(config)
    store = OfflineStore(config.offline_db, max_retries=config.max_retries)
    try:
        if args.command == 'status':
            return run_status(api, store)
        if args.command == 'sync':
            return run_sync(api, store, retry_failed=args.retry_failed)
        if args.command == 'fetch':
            return run_fetch(api, store, args.entity, params, config.cache_ttl, force=args.force)
        return run_watch(api, store, args.interval or config.health_interval)
    finally:
        store.close()


if __name__ == '__main__':
    sys.exit(main())
