from imprompt.game.models import Room
from imprompt.game.scheduler import ManualScheduler
from imprompt.game.store import RoomStore, normalize_room_code


def test_call_every_fires_until_cancelled():
    scheduler = ManualScheduler(start_ms=0)
    seen = []

    def tick(handle):
        seen.append(scheduler.now_ms())
        if len(seen) == 3:
            handle.cancel()

    scheduler.call_every(1, tick)
    scheduler.advance(10)

    assert seen == [1000, 2000, 3000]
    assert scheduler.pending == []
    assert scheduler.now_ms() == 10_000


def test_call_later_fires_once():
    scheduler = ManualScheduler(start_ms=0)
    seen = []
    handle = scheduler.call_later(8, lambda h: seen.append(h.cancelled))

    scheduler.advance(7.999)
    assert seen == []
    scheduler.advance(1)
    assert seen == [True]
    assert handle.cancelled


def test_cancelled_timer_never_fires():
    scheduler = ManualScheduler()
    seen = []
    scheduler.call_later(1, seen.append).cancel()
    scheduler.advance(5)
    assert seen == []


def test_timers_fire_in_due_order():
    scheduler = ManualScheduler(start_ms=0)
    seen = []
    scheduler.call_later(2, lambda h: seen.append('b'))
    scheduler.call_later(1, lambda h: seen.append('a'))
    scheduler.call_later(2, lambda h: seen.append('c'))
    scheduler.advance(3)
    assert seen == ['a', 'b', 'c']


def test_store_codes_are_unique_and_normalised():
    store = RoomStore()
    codes = set()
    for _ in range(50):
        code = store.new_code()
        assert len(code) == 6 and code.isalnum() and code == code.upper()
        store.set(Room(id=code))
        codes.add(code)
    assert len(store) == len(codes) == 50

    assert normalize_room_code(' ab1 ') == 'AB1'
    assert normalize_room_code(None) == ''


def test_store_delete():
    store = RoomStore()
    store.set(Room(id='ABC'))
    assert 'ABC' in store
    assert store.delete('ABC') is True
    assert store.delete('ABC') is False
    assert store.get('ABC') is None
