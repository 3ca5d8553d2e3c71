# -*- coding: utf-8 -*-
"""
================================================================================
Shipping Workflow
================================================================================
Purpose:
----------------
This module is the entry point the batch jobs and the command line use to talk
to MTAPI. It calls the `Courier` client and turns its exceptions into result
dictionaries, so a caller processing many orders can record a failure and move
on to the next one.

Every result has a `success` flag. A failed result also carries `error_kind`
(one of 'validation', 'transport', 'provider', 'decode') and a readable `error`.
----------------
"""

# =====================================================================================
# --- Imports ---
# =====================================================================================
import logging

from shipping.mtapi.errors import DecodeError, ProviderError, TransportError, ValidationError

logger = logging.getLogger(__name__)

ERROR_KINDS = (
    (ValidationError, 'validation'),
    (TransportError, 'transport'),
    (ProviderError, 'provider'),
    (DecodeError, 'decode'),
)


def _failure(error):
    for error_class, kind in ERROR_KINDS:
        if isinstance(error, error_class):
            return {'success': False, 'error_kind': kind, 'error': str(error)}
    raise error


# =====================================================================================
# --- Operations ---
# =====================================================================================

def create_shipment(courier, params, order):
    """
    Creates a shipment and returns a result dictionary.

    Returns:
        dict: {'success': True, 'tracking_number': str} or a failure result.
    """
    try:
        tracking_number = courier.new_package(params, order)
    except (ValidationError, TransportError, ProviderError, DecodeError) as e:
        logger.warning(f"Shipment creation failed: {e}")
        return _failure(e)
    return {'success': True, 'tracking_number': tracking_number}


def fetch_label(courier, tracking_number, command, apikey, destination=None):
    """
    Downloads the PDF label for a shipment and returns a result dictionary.

    Returns:
        dict: {'success': True, 'label_path': str} or a failure result.
    """
    label_path = destination or courier.label_path
    try:
        courier.package_pdf(tracking_number, command, apikey, destination=label_path)
    except (TransportError, ProviderError, DecodeError) as e:
        logger.warning(f"Label download failed for {tracking_number}: {e}")
        return _failure(e)
    return {'success': True, 'label_path': label_path}
