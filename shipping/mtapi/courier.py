# -*- coding: utf-8 -*-
"""
================================================================================
MTAPI Courier Client
================================================================================
Purpose:
----------------
This module wraps the MTAPI courier booking API (https://mtapi.net). The API
exposes a single endpoint and dispatches on the `Command` field of the JSON
body, so both operations below are a plain POST to the configured base URL.

Key Operations:
- `Courier.new_package(params, order)`: Validates the shipment parameters and
  the consignee details, builds the `OrderShipment` payload, submits it and
  returns the tracking number issued by the provider.
- `Courier.package_pdf(tracking_number, command, apikey)`: Requests the label
  for an existing shipment and writes the decoded PDF to disk.

Every failure is raised as one of the error kinds in `shipping.mtapi.errors`.
Use `shipping.workflow` for the result-dictionary style used by the batch jobs.
----------------
"""

# =====================================================================================
# --- Imports ---
# =====================================================================================
import base64
import binascii
import json
import logging
from collections import namedtuple

import requests

from shipping.mtapi.errors import DecodeError, ProviderError, TransportError, ValidationError

logger = logging.getLogger(__name__)


# =====================================================================================
# --- Configuration ---
# =====================================================================================
MTAPI_URL = 'https://mtapi.net'
DEFAULT_LABEL_PATH = 'label.pdf'
REQUEST_TIMEOUT_SECONDS = 30
MAX_FIELD_LENGTH = 30

ERROR_MSG_MANDATORY = '"%s" field is mandatory.'
ERROR_MSG_LENGTH = '"%s" field is mandatory and must be no longer than 30 characters.'

# Values used to complete a request when the caller leaves them out.
MISSING_MANDATORY_FIELDS = {
    'command': 'OrderShipment',
    'shipper_reference': '123123123',
    'weight': 0.99,
}

# Our parameter name -> MTAPI field name.
MANDATORY_PARAMS = {
    'api_key': 'Apikey',
    'command': 'Command',
    'shipper_reference': 'ShipperReference',
    'service': 'Service',
    'weight': 'Weight',
}

MANDATORY_CONSIGNEE_FIELDS = {
    'delivery_fullname': 'Name',
    'delivery_address': 'AddressLine1',
    'delivery_city': 'City',
    'delivery_postalcode': 'Zip',
    'delivery_country': 'Country',
    'delivery_phone': 'Phone',
    'delivery_email': 'Email',
}

# Order key suffix -> MTAPI address field, shared by the sender and delivery blocks.
ADDRESS_FIELDS = {
    'company': 'Company',
    'fullname': 'Name',
    'address': 'AddressLine1',
    'city': 'City',
    'postalcode': 'Zip',
    'email': 'Email',
    'phone': 'Phone',
}


# =====================================================================================
# --- Response Decoding ---
# =====================================================================================
DecodedResponse = namedtuple('DecodedResponse', ['kind', 'body', 'text'])


def decode_response(response):
    """
    Decodes an MTAPI response body before any field is inspected.

    Returns:
        DecodedResponse: `kind` is 'shipment' when the body carries a `Shipment`
        object, 'error' for any other JSON object (normally `Error`/`ErrorLevel`),
        and 'decode_failure' when the body is not a JSON object. `body` is the
        parsed dict, or None on a decode failure.
    """
    text = response.text
    try:
        body = json.loads(text)
    except (TypeError, ValueError):
        return DecodedResponse('decode_failure', None, text)

    if not isinstance(body, dict):
        return DecodedResponse('decode_failure', None, text)
    if isinstance(body.get('Shipment'), dict):
        return DecodedResponse('shipment', body, text)
    return DecodedResponse('error', body, text)


# =====================================================================================
# --- Client ---
# =====================================================================================
class Courier:
    """
    Client for the MTAPI shipment API.

    All configuration is fixed at construction. `defaults_win` selects the merge
    policy for `missing_mandatory_fields`: when False (the default) the defaults
    only fill keys the caller left out; when True they overwrite the caller's
    values, which is how the first version of this client behaved.
    """

    def __init__(
        self,
        url=MTAPI_URL,
        error_msg_mandatory=ERROR_MSG_MANDATORY,
        error_msg_length=ERROR_MSG_LENGTH,
        missing_mandatory_fields=None,
        defaults_win=False,
        label_path=DEFAULT_LABEL_PATH,
        timeout=REQUEST_TIMEOUT_SECONDS,
    ):
        self.url = url
        self.error_msg_mandatory = error_msg_mandatory
        self.error_msg_length = error_msg_length
        if missing_mandatory_fields is None:
            missing_mandatory_fields = MISSING_MANDATORY_FIELDS
        self.missing_mandatory_fields = dict(missing_mandatory_fields)
        self.defaults_win = defaults_win
        self.label_path = label_path
        self.timeout = timeout

    def merge_params(self, params):
        """Returns a new dict of `params` completed with the default values."""
        if self.defaults_win:
            return {**params, **self.missing_mandatory_fields}

        merged = dict(params)
        for key, value in self.missing_mandatory_fields.items():
            if merged.get(key) is None:
                merged[key] = value
        return merged

    def validate_params(self, params, order):
        """
        Checks the mandatory parameters and consignee fields.

        Raises:
            ValidationError: with one message per offending field.
        """
        errors = []

        for field in MANDATORY_PARAMS:
            if params.get(field) is None:
                errors.append(self.error_msg_mandatory % field)

        for field in MANDATORY_CONSIGNEE_FIELDS:
            value = order.get(field)
            if value is None or len(str(value)) > MAX_FIELD_LENGTH:
                errors.append(self.error_msg_length % field)

        if errors:
            raise ValidationError(errors)

    def build_payload(self, params, order):
        """
        Builds the JSON body for an `OrderShipment` request.

        No validation happens here; a missing key raises KeyError.
        """
        payload = {
            'Apikey': params['api_key'],
            'Command': params['command'],
            'Shipment': {
                'Weight': params['weight'],
                'ShipperReference': params['shipper_reference'],
                'Service': params['service'],
                'ConsignorAddress': _address_block(order, 'sender'),
                'ConsigneeAddress': _address_block(order, 'delivery'),
            },
        }
        return json.dumps(payload)

    def new_package(self, params, order):
        """
        Creates a package and returns its tracking number.

        Args:
            params (dict): api_key, command, shipper_reference, service, weight.
            order (dict): sender_* and delivery_* address fields.

        Returns:
            str: The tracking number issued by MTAPI.
        """
        params = self.merge_params(params)
        self.validate_params(params, order)

        logger.info(f"Creating MTAPI shipment for reference {params['shipper_reference']}...")
        response = self._post(self.build_payload(params, order))
        decoded = self._decode(response)

        tracking_number = _shipment_field(decoded, 'TrackingNumber')
        if tracking_number is None:
            raise _provider_error(decoded.body)

        logger.info(f"MTAPI shipment created. Tracking number: {tracking_number}")
        return tracking_number

    def package_pdf(self, tracking_number, command, apikey, destination=None):
        """
        Fetches the label for `tracking_number` and saves it as a PDF.

        The file is written to `destination`, or to the configured `label_path`,
        replacing any existing file.
        """
        payload = json.dumps({
            'Apikey': apikey,
            'Command': command,
            'Shipment': {
                'TrackingNumber': tracking_number,
            },
        })

        logger.info(f"Requesting MTAPI label for tracking number {tracking_number}...")
        response = self._post(payload)
        decoded = self._decode(response)

        label_image = _shipment_field(decoded, 'LabelImage')
        if label_image is None:
            raise _provider_error(decoded.body)

        try:
            pdf_data = base64.b64decode(label_image.strip())
        except (AttributeError, binascii.Error) as e:
            raise DecodeError(f"LabelImage is not valid base64: {e}") from e

        pdf_path = destination or self.label_path
        with open(pdf_path, 'wb') as f:
            f.write(pdf_data)
        logger.info(f"Saved label for {tracking_number} to {pdf_path}")

    def _post(self, payload):
        try:
            response = requests.post(
                self.url,
                data=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error while calling MTAPI: {e}")
            raise TransportError(str(e)) from e

        if response.status_code != 200:
            logger.error(f"Received HTTP {response.status_code} from MTAPI.")
            raise TransportError(f"HTTP {response.status_code}", status_code=response.status_code)
        return response

    @staticmethod
    def _decode(response):
        decoded = decode_response(response)
        if decoded.kind == 'decode_failure':
            logger.error("MTAPI returned a body that is not a JSON object.")
            raise DecodeError("response body is not a JSON object", text=decoded.text)
        return decoded


def _address_block(order, role):
    return {api_field: order[f'{role}_{suffix}'] for suffix, api_field in ADDRESS_FIELDS.items()}


def _shipment_field(decoded, field):
    # Only a 'shipment' body is guaranteed to carry a dict under `Shipment`.
    if decoded.kind != 'shipment':
        return None
    return decoded.body['Shipment'].get(field)


def _provider_error(body):
    error = ProviderError(body.get('Error'), body.get('ErrorLevel'))
    logger.error(str(error))
    return error
