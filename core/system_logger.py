"""
Structured business event logging.

Each helper writes a single record to the ``system`` logger. The record carries
an ``event`` name and a ``context`` dict in ``extra`` so the configured
formatter (or a log shipper) can index them.

These helpers are also where the customer, member and logistic notifications
of the workflow are recorded; nothing is dispatched from here.
"""
import logging

logger = logging.getLogger('system')


def _emit(level, event, message, context):
    logger.log(level, message, extra={'event': event, 'context': context or {}})


def log_checkout(user_id, order_id, total_amount, status, context=None):
    """Record a checkout attempt. ``status`` is 'success' or 'failed'."""
    data = {
        'user_id': user_id,
        'order_id': order_id,
        'total_amount': str(total_amount),
        'status': status,
    }
    data.update(context or {})
    level = logging.INFO if status == 'success' else logging.WARNING
    _emit(level, 'checkout', f"Checkout {status} for user {user_id}", data)


def log_order_status_change(order_id, old_status, new_status, user_id, user_type, context=None):
    data = {
        'order_id': order_id,
        'old_status': old_status,
        'new_status': new_status,
        'user_id': user_id,
        'user_type': user_type,
    }
    data.update(context or {})
    _emit(
        logging.INFO,
        'order_status_change',
        f"Order #{order_id} status changed: {old_status} -> {new_status}",
        data,
    )


def log_stock_update(stock_id, product_id, old_quantity, new_quantity, user_id,
                     user_type, action, context=None):
    """
    Record a stock movement.

    ``action`` names the movement (stock_sold, stock_partial_sale,
    stock_reversal, status_change, ...).
    """
    data = {
        'stock_id': stock_id,
        'product_id': product_id,
        'old_quantity': str(old_quantity),
        'new_quantity': str(new_quantity),
        'user_id': user_id,
        'user_type': user_type,
        'action': action,
    }
    data.update(context or {})
    _emit(logging.INFO, 'stock_update', f"Stock #{stock_id} {action}", data)


def log_delivery_status_change(order_id, old_status, new_status, user_id, context=None):
    data = {
        'order_id': order_id,
        'old_status': old_status,
        'new_status': new_status,
        'user_id': user_id,
    }
    data.update(context or {})
    _emit(
        logging.INFO,
        'delivery_status_change',
        f"Order #{order_id} delivery status changed: {old_status} -> {new_status}",
        data,
    )


def log_admin_activity(action, user_id, context=None):
    data = {'action': action, 'user_id': user_id}
    data.update(context or {})
    _emit(logging.INFO, 'admin_activity', f"Admin activity: {action}", data)


def log_lockout_event(action, context=None):
    _emit(logging.WARNING, 'system_lockout', f"System lockout: {action}", context or {})


def log_notification(recipient_id, notification, context=None):
    """Record a notification the workflow would send to a user."""
    data = {'recipient_id': recipient_id, 'notification': notification}
    data.update(context or {})
    _emit(logging.INFO, 'notification', f"Notify user {recipient_id}: {notification}", data)
