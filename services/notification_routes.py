"""Notification inbox and preference routes."""

from flask import jsonify, request

from backend.local_clock import now_local


def api_list_notifications():
    import app as a

    Notification = a.Notification
    db = a.db

    user = a.get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    try:
        limit = min(max(int(request.args.get('limit', 20)), 1), 200)
    except (TypeError, ValueError):
        return jsonify({'error': 'Invalid limit'}), 400
    items = (
        Notification.query
        .filter_by(user_id=user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )
    unread = db.session.query(db.func.count(Notification.id)).filter(
        Notification.user_id == user.id,
        Notification.read_at.is_(None),
    ).scalar()
    return jsonify({'notifications': [n.to_dict() for n in items], 'unread_count': unread or 0})


def api_mark_notifications_read():
    import app as a

    Notification = a.Notification
    db = a.db

    user = a.get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    now = now_local()
    updated = Notification.query.filter_by(user_id=user.id, read_at=None).update({"read_at": now})
    db.session.commit()
    return jsonify({'updated': updated})


def api_mark_notification_read(notification_id):
    import app as a

    Notification = a.Notification
    db = a.db

    user = a.get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    notif = Notification.query.filter_by(id=notification_id, user_id=user.id).first()
    if not notif:
        return jsonify({'error': 'Not found'}), 404
    if notif.read_at is None:
        notif.read_at = now_local()
        db.session.commit()
    return jsonify(notif.to_dict())


def api_delete_notification(notification_id):
    import app as a

    Notification = a.Notification
    db = a.db

    user = a.get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    notif = Notification.query.filter_by(id=notification_id, user_id=user.id).first()
    if not notif:
        return jsonify({'error': 'Not found'}), 404
    db.session.delete(notif)
    db.session.commit()
    return jsonify({'deleted': 1})


def api_clear_notifications():
    import app as a

    Notification = a.Notification
    db = a.db

    user = a.get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    deleted = Notification.query.filter_by(user_id=user.id).delete()
    db.session.commit()
    return jsonify({'deleted': deleted})


def api_notification_settings():
    import app as a

    from backend.notification_preferences import apply_preference_updates, resolve_notification_policy

    user = a.get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    if request.method == 'GET':
        return jsonify(resolve_notification_policy(user.id).to_dict())

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'JSON object body required'}), 400
    try:
        policy = apply_preference_updates(user.id, data)
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    a.app.logger.info("Notification settings updated for user %s", user.id)
    return jsonify(policy.to_dict())
