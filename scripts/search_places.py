# Command-line access to the Nominatim operations and the catalog search
from argparse import ArgumentParser
import logging
import sys

from colorama import Fore, Style

from nearby_places.geocoding import (
    NominatimClient,
    distance_between_points_miles,
)
from nearby_places.search import JsonCatalog, PlaceSearcher, SortOrder
from nearby_places.settings import settings
from nearby_places.utils.errors import (
    CatalogValidationError,
    GatewayError,
    InvalidInputError,
    PlaceNotFoundError,
)

from pathlib import Path

EXIT_UNAVAILABLE = 1
EXIT_INVALID = 2


def _fail(message, status):
    print(f'{Fore.RED}Error{Style.RESET_ALL}: {message}', file=sys.stderr)
    return status


def _print_record(record, origin=None):
    line = f'{record.reference}\t{record.latitude:.6f}\t{record.longitude:.6f}\t{record.display_name or record.name or ""}'
    if origin is not None:
        line = f'{record.distance_to(*origin):.2f} mi\t{line}'
    print(line)


def _catalog(args):
    path = args.catalog or settings.catalog_path
    if path is None:
        raise SystemExit(_fail('no catalog given; pass --catalog or set NEARBY_PLACES_CATALOG_PATH', EXIT_INVALID))
    return PlaceSearcher(JsonCatalog(path))


def build_parser():
    parser = ArgumentParser(description='Look up places on Nominatim or search a local place catalog')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('lookup', help='details for one OSM element')
    p.add_argument('osm_type')
    p.add_argument('osm_id')

    p = sub.add_parser('geocode', help='free-text Nominatim search')
    p.add_argument('query')

    p = sub.add_parser('within', help='Nominatim search around a point, nearest first')
    p.add_argument('query')
    p.add_argument('latitude')
    p.add_argument('longitude')
    p.add_argument('radius')

    p = sub.add_parser('catalog', help='rank catalog places by relevance')
    p.add_argument('query')
    p.add_argument('--near', nargs=3, metavar=('LAT', 'LON', 'RADIUS'))
    p.add_argument('--catalog', '-c', type=Path)

    p = sub.add_parser('near', help='every catalog place within a radius')
    p.add_argument('latitude')
    p.add_argument('longitude')
    p.add_argument('radius')
    p.add_argument('--nearest-first', action='store_true')
    p.add_argument('--catalog', '-c', type=Path)

    p = sub.add_parser('distance', help='great-circle distance in miles')
    for name in ('lat1', 'lon1', 'lat2', 'lon2'):
        p.add_argument(name)

    return parser


def run(args):
    if args.command == 'lookup':
        _print_record(NominatimClient().lookup(args.osm_type, args.osm_id))

    elif args.command == 'geocode':
        for record in NominatimClient().search(args.query):
            _print_record(record)

    elif args.command == 'within':
        records = NominatimClient().search_within(args.query, args.latitude, args.longitude, args.radius)
        for record in records:
            _print_record(record, origin=(float(args.latitude), float(args.longitude)))

    elif args.command == 'catalog':
        searcher = _catalog(args)
        if args.near:
            ids = searcher.search_near(args.query, *args.near)
        else:
            ids = searcher.search(args.query)
        for place_id in ids:
            print(place_id)

    elif args.command == 'near':
        order = SortOrder.NEAREST_FIRST if args.nearest_first else SortOrder.FARTHEST_FIRST
        for place_id in _catalog(args).find_all_near(args.latitude, args.longitude, args.radius, sort_order=order):
            print(place_id)

    elif args.command == 'distance':
        print(f'{distance_between_points_miles(args.lat1, args.lon1, args.lat2, args.lon2):.4f}')

    return 0


def main(argv=None):
    logging.basicConfig(level=settings.log_level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except InvalidInputError as e:
        return _fail(e.user_message, EXIT_INVALID)
    except CatalogValidationError as e:
        return _fail(f'{e}\n{e.summary()}', EXIT_INVALID)
    except PlaceNotFoundError as e:
        return _fail(str(e), EXIT_UNAVAILABLE)
    except GatewayError as e:
        logging.getLogger(__name__).debug(f'Gateway failure: {e} (status={e.http_status})')
        return _fail(e.user_message, EXIT_UNAVAILABLE)


if __name__ == '__main__':
    sys.exit(main())
