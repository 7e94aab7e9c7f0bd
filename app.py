from flask import Flask, request, jsonify, Response, stream_with_context
from typing import Optional
import json
import logging

from config import Settings, load_settings
from core.canteen import CanteenSystem
from core.logs import setup_logging

logger = logging.getLogger(__name__)

# HTTP status for each failure code
ERROR_STATUS = {
    "empty_cart": 400,
    "invalid_request": 400,
    "invalid_amount": 400,
    "insufficient_balance": 402,
    "order_not_found": 404,
    "item_unavailable": 409,
    "invalid_status_transition": 409,
    "persistence_failure": 503,
}


def respond(result: dict, success_status: int = 200):
    if result.get("success"):
        return jsonify(result), success_status
    return jsonify(result), ERROR_STATUS.get(result.get("code"), 400)


def format_sse(event) -> str:
    return f"id: {event.event_id}\nevent: {event.kind.value}\ndata: {json.dumps(event.to_dict())}\n\n"


def event_stream(system: CanteenSystem, customer_id: Optional[str],
                 last_event_id: int, keepalive: float):
    # Subscribe first, then replay what was missed, so nothing falls in between.
    # Events are always read back from the outbox in id order; a live event only
    # wakes the loop early, and a quiet interval also picks up what other
    # processes committed.
    subscription = system.subscribe(customer_id)
    last_sent = last_event_id
    try:
        while True:
            pending = system.replay_events(last_sent, customer_id)
            for event in pending:
                last_sent = event.event_id
                yield format_sse(event)
            if subscription.closed:
                return

            woken = subscription.get(timeout=keepalive)
            if woken is None and not pending:
                yield ": keepalive\n\n"
    finally:
        subscription.close()


def create_app(system: Optional[CanteenSystem] = None,
               settings: Optional[Settings] = None) -> Flask:
    settings = settings or load_settings()
    system = system or CanteenSystem(settings.db_path, settings.db_timeout)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config["CANTEEN"] = system

    def current_customer() -> Optional[str]:
        # Supplied by the auth provider in front of this service
        return request.headers.get("X-Customer-Id", "").strip() or None

    def unauthorized():
        return jsonify({"success": False, "error": "Customer id missing.", "code": "unauthorized"}), 401

    def last_event_id() -> int:
        raw = request.headers.get("Last-Event-ID") or request.args.get("last_event_id") or "0"
        try:
            return max(0, int(raw))
        except ValueError:
            return 0

    def stream(customer_id: Optional[str]) -> Response:
        body = event_stream(system, customer_id, last_event_id(), settings.sse_keepalive_seconds)
        return Response(
            stream_with_context(body),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}
        )

    # === Customer ===
    @app.route('/api/menu', methods=['GET'])
    def menu():
        """Available menu grouped by cuisine"""
        return respond(system.get_menu())

    @app.route('/api/checkout', methods=['POST'])
    def checkout():
        """Place an order from the client cart"""
        customer_id = current_customer()
        if not customer_id:
            return unauthorized()

        data = request.get_json(silent=True) or {}
        result = system.checkout_items(
            customer_id,
            data.get("items", {}),
            payment_method=data.get("payment_method", "balance"),
            checkout_key=data.get("checkout_key") or request.headers.get("Idempotency-Key"),
            payment_reference=data.get("payment_reference")
        )
        return respond(result, success_status=201)

    @app.route('/api/wallet', methods=['GET'])
    def wallet():
        customer_id = current_customer()
        if not customer_id:
            return unauthorized()
        return respond(system.get_wallet(customer_id))

    @app.route('/api/wallet/topup', methods=['POST'])
    def wallet_topup():
        customer_id = current_customer()
        if not customer_id:
            return unauthorized()
        data = request.get_json(silent=True) or {}
        return respond(system.top_up(customer_id, data.get("amount")))

    @app.route('/api/orders', methods=['GET'])
    def my_orders():
        customer_id = current_customer()
        if not customer_id:
            return unauthorized()
        return respond(system.list_orders(customer_id))

    @app.route('/api/orders/<order_id>', methods=['GET'])
    def my_order(order_id):
        customer_id = current_customer()
        if not customer_id:
            return unauthorized()
        return respond(system.get_order_details(order_id, customer_id))

    @app.route('/api/orders/stream', methods=['GET'])
    def my_order_stream():
        """Server-sent events for the caller's own orders"""
        customer_id = current_customer()
        if not customer_id:
            return unauthorized()
        return stream(customer_id)

    # === Staff ===
    @app.route('/api/staff/orders', methods=['GET'])
    def staff_orders():
        return respond(system.list_orders(status=request.args.get("status")))

    @app.route('/api/staff/orders/<order_id>', methods=['PATCH'])
    def staff_update_order(order_id):
        data = request.get_json(silent=True) or {}
        return respond(system.update_order_status(order_id, data.get("status"), data.get("note")))

    @app.route('/api/staff/orders/stream', methods=['GET'])
    def staff_order_stream():
        """Server-sent events for every order"""
        return stream(None)

    @app.route('/api/staff/menu/<item_id>', methods=['PATCH'])
    def staff_update_menu_item(item_id):
        data = request.get_json(silent=True) or {}
        if not isinstance(data.get("is_available"), bool):
            return jsonify({"success": False, "error": "is_available must be true or false.",
                            "code": "invalid_request"}), 400
        return respond(system.set_item_availability(item_id, data["is_available"]))

    @app.route('/api/staff/analytics', methods=['GET'])
    def staff_analytics():
        return respond(system.sales_summary())

    @app.route('/health')
    def health():
        """Health check endpoint"""
        return jsonify({'status': 'ok', 'message': 'Canteen Orders is running!'})

    return app


if __name__ == '__main__':
    settings = load_settings()
    setup_logging(settings.log_level)

    logger.info("=== Canteen Orders Server ===")
    logger.info("Starting server on http://localhost:%s", settings.port)

    create_app(settings=settings).run(
        host='0.0.0.0',
        port=settings.port,
        debug=settings.debug,
        threaded=True
    )
