#!/usr/bin/env python3

"""
Main entry point for MTAPI shipping.

Subcommands:
- `create`: books one shipment from an order JSON file and prints its tracking number.
- `label`: downloads the PDF label for a tracking number.
- `csv`: books every order awaiting shipment in a tab-separated orders file.

The API key is read from `secrets.txt` (MTAPI_API_KEY) or the environment.
"""

import argparse
import json
import os
import sys

# Ensure the project root is in the Python path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from common.utils import get_mtapi_api_key, get_mtapi_url, setup_logging
from shipping.mtapi.courier import Courier, DEFAULT_LABEL_PATH
from shipping.mtapi.errors import CourierError
from shipping.mtapi.labels_from_csv import DEFAULT_LABEL_COMMAND, process_orders_from_csv

# Relative to the working directory.
LOG_DIR = 'logs'
DEFAULT_PDF_DIR = 'pdf_labels'


def load_json(path):
    with open(path, 'r') as f:
        return json.load(f)


def build_parser():
    parser = argparse.ArgumentParser(description="Create MTAPI shipments and download their labels.")
    parser.add_argument("--log-dir", default=LOG_DIR, help="Directory for the dated log files.")
    subparsers = parser.add_subparsers(dest='command', required=True)

    create = subparsers.add_parser('create', help="Create a shipment and print its tracking number.")
    create.add_argument("--order", required=True, help="JSON file with the sender_* and delivery_* fields.")
    create.add_argument("--service", required=True, help="MTAPI service code.")
    create.add_argument("--weight", type=float, help="Parcel weight.")
    create.add_argument("--reference", help="Shipper reference for this shipment.")

    label = subparsers.add_parser('label', help="Download the PDF label for a tracking number.")
    label.add_argument("tracking_number")
    label.add_argument("--label-command", default=DEFAULT_LABEL_COMMAND, help="MTAPI command used for labels.")
    label.add_argument("--output", default=DEFAULT_LABEL_PATH, help="Where to write the PDF.")

    batch = subparsers.add_parser('csv', help="Ship every order awaiting shipment in a CSV file.")
    batch.add_argument("path", help="Tab-separated orders file.")
    batch.add_argument("--sender", required=True, help="JSON file with the sender_* fields.")
    batch.add_argument("--service", required=True, help="MTAPI service code.")
    batch.add_argument("--pdf-dir", default=DEFAULT_PDF_DIR, help="Directory for the PDF labels.")
    batch.add_argument("--label-command", default=DEFAULT_LABEL_COMMAND, help="MTAPI command used for labels.")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logger = setup_logging(args.log_dir, 'mtapi_shipping')

    api_key = get_mtapi_api_key()
    if not api_key:
        logger.critical("MTAPI_API_KEY is not configured. Cannot proceed.")
        return 1

    courier = Courier(url=get_mtapi_url())

    try:
        if args.command == 'create':
            params = {'api_key': api_key, 'service': args.service}
            if args.weight is not None:
                params['weight'] = args.weight
            if args.reference:
                params['shipper_reference'] = args.reference
            print(courier.new_package(params, load_json(args.order)))

        elif args.command == 'label':
            courier.package_pdf(args.tracking_number, args.label_command, api_key, destination=args.output)

        elif args.command == 'csv':
            process_orders_from_csv(
                courier, args.path, args.pdf_dir, api_key, load_json(args.sender), args.service,
                label_command=args.label_command
            )
    except CourierError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
