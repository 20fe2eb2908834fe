import queue

import pytest

from travelhub.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from travelhub.models import ConversationType, Message, Notification, NotificationType
from travelhub.services.chat_service import ChatService
from travelhub.services.notification_service import NotificationService
from travelhub.services.realtime import hub


def drain(client_queue):
    events = []
    while True:
        try:
            events.append(client_queue.get_nowait())
        except queue.Empty:
            return events


@pytest.fixture
def conversation(customer, owner):
    conversation, _ = ChatService.get_or_create_conversation(customer.id, owner.id)
    return conversation


def test_start_conversation_endpoint(client, customer, owner, auth_headers):
    response = client.post('/api/chat/conversations', headers=auth_headers(customer),
                           json={'user_id': owner.id, 'message': 'Is parking available?'})

    assert response.status_code == 201
    body = response.get_json()
    assert body['created'] is True
    assert body['conversation']['type'] == 'customer_provider'
    assert body['conversation']['message_count'] == 1
    assert body['conversation']['last_message']['content'] == 'Is parking available?'

    again = client.post('/api/chat/conversations', headers=auth_headers(customer), json={'user_id': owner.id})
    assert again.status_code == 200
    assert again.get_json()['created'] is False
    assert again.get_json()['conversation']['id'] == body['conversation']['id']


def test_conversation_type_follows_roles(customer, admin):
    conversation, created = ChatService.get_or_create_conversation(admin.id, customer.id)

    assert created is True
    assert conversation.conversation_type == ConversationType.CUSTOMER_ADMIN


def test_cannot_chat_with_yourself(customer):
    with pytest.raises(ValidationError):
        ChatService.get_or_create_conversation(customer.id, customer.id)


def test_send_message_updates_counters_and_notifies(conversation, customer, owner):
    owner_stream = hub.subscribe(owner.id)
    customer_stream = hub.subscribe(customer.id)

    message = ChatService.send_message(conversation.id, customer.id, '  Hello there  ')

    assert message.content == 'Hello there'
    assert message.read_by == [customer.id]
    assert conversation.message_count == 1
    assert conversation.last_message_id == message.id
    assert conversation.participant(owner.id).unread_count == 1
    assert conversation.participant(customer.id).unread_count == 0

    assert any(e.startswith('event: message') for e in drain(owner_stream))
    assert any(e.startswith('event: message') for e in drain(customer_stream))

    notifications = Notification.query.filter_by(user_id=owner.id).all()
    assert len(notifications) == 1
    assert notifications[0].notification_type == NotificationType.NEW_MESSAGE
    assert Notification.query.filter_by(user_id=customer.id).count() == 0


def test_message_validation(app, conversation, customer):
    with pytest.raises(ValidationError):
        ChatService.send_message(conversation.id, customer.id, '   ')

    too_long = 'x' * (app.config['MAX_MESSAGE_LENGTH'] + 1)
    with pytest.raises(ValidationError):
        ChatService.send_message(conversation.id, customer.id, too_long)


def test_outsiders_are_rejected(conversation, make_user):
    outsider = make_user()

    with pytest.raises(PermissionDeniedError):
        ChatService.send_message(conversation.id, outsider.id, 'hi')
    with pytest.raises(PermissionDeniedError):
        ChatService.get_messages(conversation.id, outsider.id)


def test_reading_messages_clears_unread(conversation, customer, owner):
    for text in ('one', 'two', 'three'):
        ChatService.send_message(conversation.id, customer.id, text)

    page = ChatService.get_messages(conversation.id, owner.id, limit=2)

    assert [m.content for m in page] == ['two', 'three']
    assert conversation.participant(owner.id).unread_count == 1

    customer_stream = hub.subscribe(customer.id)
    assert ChatService.mark_as_read(conversation.id, owner.id) == 1
    assert conversation.participant(owner.id).unread_count == 0
    assert any(e.startswith('event: read') for e in drain(customer_stream))


def test_messages_endpoint_pagination(client, conversation, customer, owner, auth_headers):
    for text in ('one', 'two', 'three'):
        ChatService.send_message(conversation.id, customer.id, text)

    response = client.get(f'/api/chat/conversations/{conversation.id}/messages?limit=2',
                          headers=auth_headers(owner))
    body = response.get_json()

    assert response.status_code == 200
    assert [m['content'] for m in body['messages']] == ['two', 'three']
    assert body['has_more'] is True

    older = client.get(f"/api/chat/conversations/{conversation.id}/messages?limit=2&before={body['messages'][0]['id']}",
                       headers=auth_headers(owner))
    assert [m['content'] for m in older.get_json()['messages']] == ['one']
    assert older.get_json()['has_more'] is False


def test_unread_count_endpoint(client, conversation, customer, owner, auth_headers):
    ChatService.send_message(conversation.id, customer.id, 'ping')
    ChatService.send_message(conversation.id, customer.id, 'ping again')

    response = client.get('/api/chat/unread-count', headers=auth_headers(owner))

    assert response.get_json() == {'total': 2, 'by_conversation': {str(conversation.id): 2}}


def test_hidden_conversation_returns_on_new_message(conversation, customer, owner):
    ChatService.hide_conversation(conversation.id, owner.id)

    conversations, total = ChatService.list_conversations(owner.id)
    assert total == 0
    with pytest.raises(NotFoundError):
        ChatService.get_conversation(conversation.id, owner.id)

    ChatService.send_message(conversation.id, customer.id, 'Still there?')

    conversations, total = ChatService.list_conversations(owner.id)
    assert [c.id for c in conversations] == [conversation.id]


def test_edit_and_delete_own_messages_only(conversation, customer, owner):
    message = ChatService.send_message(conversation.id, customer.id, 'Helo')

    with pytest.raises(PermissionDeniedError):
        ChatService.edit_message(message.id, owner.id, 'Hijacked')

    edited = ChatService.edit_message(message.id, customer.id, 'Hello')
    assert edited.is_edited is True
    assert edited.content == 'Hello'

    deleted = ChatService.delete_message(message.id, customer.id)
    assert deleted.to_dict()['content'] == ''
    assert deleted.to_dict()['is_deleted'] is True

    with pytest.raises(ValidationError):
        ChatService.edit_message(message.id, customer.id, 'again')


def test_typing_indicator(client, conversation, customer, owner, auth_headers):
    owner_stream = hub.subscribe(owner.id)

    response = client.post('/api/chat/typing', headers=auth_headers(customer),
                           json={'conversation_id': conversation.id, 'is_typing': True})
    assert response.status_code == 200
    assert any(e.startswith('event: typing') for e in drain(owner_stream))

    seen_by_owner = client.get(f'/api/chat/typing?conversation_id={conversation.id}', headers=auth_headers(owner))
    assert seen_by_owner.get_json()['typing_user_ids'] == [customer.id]

    seen_by_customer = client.get(f'/api/chat/typing?conversation_id={conversation.id}',
                                  headers=auth_headers(customer))
    assert seen_by_customer.get_json()['typing_user_ids'] == []

    ChatService.send_message(conversation.id, customer.id, 'done typing')
    assert ChatService.get_typing(conversation.id, owner.id) == []


def test_send_message_endpoint_errors(client, conversation, make_user, auth_headers):
    outsider = make_user()

    forbidden = client.post(f'/api/chat/conversations/{conversation.id}/messages',
                            headers=auth_headers(outsider), json={'content': 'hi'})
    assert forbidden.status_code == 403

    missing = client.post('/api/chat/conversations/9999/messages', headers=auth_headers(outsider),
                          json={'content': 'hi'})
    assert missing.status_code == 404


def test_failed_notification_keeps_the_message(conversation, customer, owner, monkeypatch):
    def broken_dispatch(*args, **kwargs):
        raise RuntimeError('mail server down')

    monkeypatch.setattr(NotificationService, 'create_and_dispatch', staticmethod(broken_dispatch))

    message = ChatService.send_message(conversation.id, customer.id, 'Are towels provided?')

    stored = Message.query.get(message.id)
    assert stored is not None
    assert stored.content == 'Are towels provided?'
    assert conversation.message_count == 1
    assert conversation.last_message_id == message.id
    assert conversation.participant(owner.id).unread_count == 1
    assert Notification.query.count() == 0


def test_message_page_size_is_capped(client, conversation, customer, owner, auth_headers):
    for n in range(205):
        ChatService.send_message(conversation.id, customer.id, f'message {n}')

    response = client.get(f'/api/chat/conversations/{conversation.id}/messages?limit=500',
                          headers=auth_headers(owner))
    body = response.get_json()

    assert len(body['messages']) == 200
    assert body['messages'][-1]['content'] == 'message 204'
    assert body['has_more'] is True


def test_unknown_conversation_type_filter(client, customer, auth_headers):
    response = client.get('/api/chat/conversations?type=bogus', headers=auth_headers(customer))

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid conversation type: bogus'


def test_start_conversation_with_non_numeric_user(client, customer, auth_headers):
    response = client.post('/api/chat/conversations', headers=auth_headers(customer), json={'user_id': 'abc'})

    assert response.status_code == 400


def test_typing_flag_accepts_false_strings(client, conversation, customer, owner, auth_headers):
    client.post('/api/chat/typing', headers=auth_headers(customer),
                json={'conversation_id': conversation.id, 'is_typing': True})
    client.post('/api/chat/typing', headers=auth_headers(customer),
                json={'conversation_id': conversation.id, 'is_typing': 'false'})

    assert ChatService.get_typing(conversation.id, owner.id) == []
