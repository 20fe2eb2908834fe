from travelhub.models import WishlistItem


def test_toggle_saves_and_unsaves(client, customer, listing, vehicle, auth_headers):
    headers = auth_headers(customer)

    added = client.post(f'/api/wishlist/toggle/property/{listing.id}', headers=headers)
    assert added.status_code == 200
    assert added.get_json()['added'] is True
    assert added.get_json()['wishlist']['property'] == [listing.id]

    client.post(f'/api/wishlist/toggle/vehicle/{vehicle.id}', headers=headers)
    saved = client.get('/api/wishlist', headers=headers).get_json()
    assert [p['id'] for p in saved['properties']] == [listing.id]
    assert [v['id'] for v in saved['vehicles']] == [vehicle.id]
    assert saved['tours'] == []

    removed = client.post(f'/api/wishlist/toggle/property/{listing.id}', headers=headers)
    assert removed.get_json()['added'] is False
    assert removed.get_json()['wishlist'] == {'property': [], 'vehicle': [vehicle.id], 'tour': []}


def test_explicit_add_is_idempotent(client, customer, tour, auth_headers):
    headers = auth_headers(customer)

    client.post(f'/api/wishlist/toggle/tour/{tour.id}', headers=headers, json={'action': 'add'})
    again = client.post(f'/api/wishlist/toggle/tour/{tour.id}', headers=headers, json={'action': 'add'})

    assert again.get_json()['added'] is True
    assert WishlistItem.query.filter_by(user_id=customer.id).count() == 1

    client.post(f'/api/wishlist/toggle/tour/{tour.id}', headers=headers, json={'action': 'remove'})
    assert WishlistItem.query.count() == 0


def test_wishlists_are_per_user(client, customer, make_user, listing, auth_headers):
    client.post(f'/api/wishlist/toggle/property/{listing.id}', headers=auth_headers(customer))

    other = client.get('/api/wishlist', headers=auth_headers(make_user())).get_json()

    assert other['wishlist_ids'] == {'property': [], 'vehicle': [], 'tour': []}


def test_toggle_rejects_bad_input(client, customer, listing, auth_headers):
    headers = auth_headers(customer)

    assert client.post(f'/api/wishlist/toggle/boat/{listing.id}', headers=headers).status_code == 400
    assert client.post('/api/wishlist/toggle/property/9999', headers=headers).status_code == 404
    assert client.post(f'/api/wishlist/toggle/property/{listing.id}', headers=headers,
                       json={'action': 'star'}).status_code == 400
    assert client.get('/api/wishlist').status_code == 401
