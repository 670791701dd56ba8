from cloudnuke.unique_id import BASE_62_CHARS, UNIQUE_ID_LENGTH, unique_id


def test_length_is_fixed():
    for _ in range(50):
        assert len(unique_id()) == UNIQUE_ID_LENGTH


def test_alphabet_is_base62():
    for _ in range(200):
        assert set(unique_id()) <= set(BASE_62_CHARS)


def test_ids_cover_the_whole_alphabet():
    seen = set("".join(unique_id() for _ in range(2000)))
    assert seen == set(BASE_62_CHARS)
    assert len(seen) == 62


def test_ids_rarely_collide():
    ids = {unique_id() for _ in range(500)}
    assert len(ids) >= 495