import logging
import os

import pandas as pd

from shipping import workflow

logger = logging.getLogger(__name__)

# --- Configuration ---
CSV_SEPARATOR = '\t'
STATUS_AWAITING = 'Awaiting shipment'
STATUS_SHIPPED = 'Shipped'
STATUS_LABEL_FAILED = 'Label failed'
STATUS_FAILED = 'Failed'
DEFAULT_LABEL_COMMAND = 'GetShipmentImage'


def order_from_row(row, sender):
    """Maps one CSV row onto the order details expected by `Courier.new_package`."""
    order = dict(sender)
    order.update({
        'delivery_company': row['Shipping address company'],
        'delivery_fullname': f"{row['Shipping address first name']} {row['Shipping address last name']}".strip(),
        'delivery_address': row['Shipping address street 1'],
        'delivery_city': row['Shipping address city'],
        'delivery_postalcode': row['Shipping address zip'],
        'delivery_country': row['Shipping address country'],
        'delivery_email': row['Shipping address email'],
        'delivery_phone': row['Shipping address phone'],
    })
    return order


def params_from_row(row, api_key, service):
    params = {
        'api_key': api_key,
        'service': service,
        'shipper_reference': row['Order number'],
    }
    # Rows without a weight fall back to the courier's default.
    if row.get('Weight'):
        params['weight'] = float(row['Weight'])
    return params


def process_orders_from_csv(courier, orders_csv_path, pdf_dir, api_key, sender, service,
                            label_command=DEFAULT_LABEL_COMMAND):
    """
    Creates MTAPI shipments and labels for every order awaiting shipment.

    Reads a tab-separated orders file, books each row whose `Status` is
    'Awaiting shipment', saves its label as `<pdf_dir>/<order number>.pdf` and
    records the outcome in the `Status` and `Tracking number` columns. The file
    is only rewritten when at least one order succeeded.

    Args:
        courier (Courier): Configured MTAPI client.
        orders_csv_path (str): Path of the orders file.
        pdf_dir (str): Directory receiving the PDF labels.
        api_key (str): MTAPI key used for both requests.
        sender (dict): sender_* fields used as the consignor of every shipment.
        service (str): MTAPI service code.
        label_command (str): Command used to request labels.

    Returns:
        int: Number of orders shipped successfully.
    """
    try:
        # Read every column as text so phone numbers and postcodes keep their leading zeros.
        df = pd.read_csv(orders_csv_path, sep=CSV_SEPARATOR, dtype=str, keep_default_na=False)
    except FileNotFoundError:
        logger.error(f"The file {orders_csv_path} was not found.")
        return 0

    if 'Tracking number' not in df.columns:
        df['Tracking number'] = ''

    orders_to_process = df[df['Status'] == STATUS_AWAITING]
    if orders_to_process.empty:
        logger.info("No orders are currently awaiting shipment in the CSV file.")
        return 0

    logger.info(f"Found {len(orders_to_process)} orders to process.")
    os.makedirs(pdf_dir, exist_ok=True)
    success_count = 0

    for index, row in orders_to_process.iterrows():
        order_number = row['Order number']
        logger.info(f"--- Processing Order: {order_number} ---")

        try:
            result = workflow.create_shipment(courier, params_from_row(row, api_key, service), order_from_row(row, sender))
        except (KeyError, ValueError) as e:
            logger.error(f"Could not build the shipment for order {order_number}. Reason: {e!r}")
            df.loc[index, 'Status'] = STATUS_FAILED
            continue

        if not result['success']:
            logger.error(f"Shipment failed for order {order_number}. Reason: {result['error']}")
            df.loc[index, 'Status'] = STATUS_FAILED
            continue

        tracking_number = result['tracking_number']
        df.loc[index, 'Tracking number'] = tracking_number

        pdf_path = os.path.join(pdf_dir, f"{order_number}.pdf")
        label_result = workflow.fetch_label(courier, tracking_number, label_command, api_key, destination=pdf_path)
        if not label_result['success']:
            logger.error(f"Label failed for order {order_number}. Reason: {label_result['error']}")
            df.loc[index, 'Status'] = STATUS_LABEL_FAILED
            continue

        df.loc[index, 'Status'] = STATUS_SHIPPED
        success_count += 1

    if success_count > 0:
        df.to_csv(orders_csv_path, index=False, sep=CSV_SEPARATOR)
        logger.info(f"Successfully updated {success_count} orders in {orders_csv_path}.")
    else:
        logger.info("No orders were successfully processed. CSV file not updated.")

    return success_count
