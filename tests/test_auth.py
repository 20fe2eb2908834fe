from extensions import db
from travelhub.models import ProviderType, User, UserRole


def register(client, **overrides):
    payload = {
        'email': 'sara@example.com',
        'username': 'sara',
        'password': 'supersecret',
        'first_name': 'Sara',
        'last_name': 'Khan',
    }
    payload.update(overrides)
    return client.post('/api/auth/register', json=payload)


def test_register_customer(client):
    response = register(client)

    assert response.status_code == 201
    body = response.get_json()
    assert body['user']['role'] == 'customer'
    assert body['access_token']
    assert body['refresh_token']
    assert any('access_token_cookie' in c for c in response.headers.getlist('Set-Cookie'))


def test_register_provider_needs_provider_type(client):
    assert register(client, role='provider').status_code == 400

    response = register(client, role='provider', provider_type='tour_guide')
    assert response.status_code == 201
    assert response.get_json()['user']['provider_type'] == 'tour_guide'


def test_cannot_self_register_as_admin(client):
    assert register(client, role='admin').status_code == 403
    assert User.query.count() == 0


def test_register_validation(client):
    assert register(client, password='short').status_code == 400
    assert register(client, email='').status_code == 400
    assert register(client).status_code == 201
    assert register(client, username='other').status_code == 409
    assert register(client, email='other@example.com').status_code == 409


def test_login_and_me(client, customer):
    bad = client.post('/api/auth/login', json={'email': customer.email, 'password': 'wrong-password'})
    assert bad.status_code == 401

    response = client.post('/api/auth/login', json={'email': customer.email, 'password': 'password123'})
    assert response.status_code == 200
    token = response.get_json()['access_token']

    me = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    assert me.get_json()['user']['email'] == customer.email


def test_deactivated_user_cannot_login(client, customer):
    customer.is_active = False
    db.session.commit()

    response = client.post('/api/auth/login', json={'email': customer.email, 'password': 'password123'})

    assert response.status_code == 403


def test_refresh_token(client, customer):
    login = client.post('/api/auth/login', json={'email': customer.email, 'password': 'password123'}).get_json()

    response = client.post('/api/auth/refresh', headers={'Authorization': f"Bearer {login['refresh_token']}"})

    assert response.status_code == 200
    assert response.get_json()['access_token']


def test_change_password(client, customer, auth_headers):
    headers = auth_headers(customer)

    wrong = client.post('/api/auth/change-password', headers=headers,
                        json={'current_password': 'nope', 'new_password': 'brandnewpass'})
    assert wrong.status_code == 401

    ok = client.post('/api/auth/change-password', headers=headers,
                     json={'current_password': 'password123', 'new_password': 'brandnewpass'})
    assert ok.status_code == 200
    assert customer.check_password('brandnewpass')


def test_protected_route_without_token(client):
    assert client.get('/api/auth/me').status_code == 401


def test_role_guard(client, customer, make_user, auth_headers):
    guide = make_user(UserRole.PROVIDER, ProviderType.TOUR_GUIDE)
    payload = {'make': 'Honda', 'model': 'Civic', 'daily_rate': 4000}

    assert client.post('/api/vehicles', headers=auth_headers(customer), json=payload).status_code == 403
    assert client.post('/api/vehicles', headers=auth_headers(guide), json=payload).status_code == 403

    driver = make_user(UserRole.PROVIDER, ProviderType.VEHICLE_OWNER)
    assert client.post('/api/vehicles', headers=auth_headers(driver), json=payload).status_code == 201


def test_update_profile(client, customer, auth_headers):
    response = client.put('/api/users/me', headers=auth_headers(customer),
                          json={'bio': 'Weekend hiker', 'email_notifications': False})

    assert response.status_code == 200
    assert response.get_json()['user']['bio'] == 'Weekend hiker'
    assert customer.email_notifications is False

    profile = client.get(f'/api/users/{customer.id}').get_json()['user']
    assert profile['is_online'] is True
