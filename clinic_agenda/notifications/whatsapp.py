"""
WhatsApp Notification Adapter

Asks the messaging gateway to deliver an appointment message. Scheduling
never waits on the outcome: failures are logged and reported as ``False``.
"""

import logging

import requests

from clinic_agenda.core import config

logger = logging.getLogger(__name__)

MESSAGE_TYPES = ('confirmation', 'reminder', 'cancellation')


def send_appointment_message(
    appointment_id,
    message_type: str = 'confirmation',
    recipient_type: str = 'patient',
) -> bool:
    if message_type not in MESSAGE_TYPES:
        raise ValueError(f'Unsupported WhatsApp message type: {message_type!r}.')

    if not config.WHATSAPP_ENABLED or not config.WHATSAPP_FUNCTION_URL:
        logger.warning('WhatsApp delivery disabled; skipping %s for appointment %s.', message_type, appointment_id)
        return False

    headers = {'Content-Type': 'application/json'}
    if config.WHATSAPP_API_TOKEN:
        headers['Authorization'] = f'Bearer {config.WHATSAPP_API_TOKEN}'

    try:
        response = requests.post(
            config.WHATSAPP_FUNCTION_URL,
            json={
                'appointmentId': str(appointment_id),
                'messageType': message_type,
                'recipientType': recipient_type,
            },
            headers=headers,
            timeout=config.WHATSAPP_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.RequestException:
        logger.exception('WhatsApp %s failed for appointment %s.', message_type, appointment_id)
        return False

    logger.info('WhatsApp %s sent for appointment %s.', message_type, appointment_id)
    return True
