import threading

from mmo_skills.systems.skill.results import FailReason


def test_concurrent_casts_never_overspend_mana(engine_factory, hero_factory, monster_factory, catalog):
    catalog.append(
        {"id": 60, "name": "Jab", "skill_type": "attack", "target_type": "single",
         "mana_cost": 10, "range": 5.0, "base_damage": 1}
    )
    hero = hero_factory(mana=50)
    goblin = monster_factory(100, current_health=10 ** 6, max_health=10 ** 6)
    engine = engine_factory([hero], [goblin], catalog=catalog, learn=[(1, 60)])

    barrier = threading.Barrier(10)
    results = []
    results_lock = threading.Lock()

    def worker():
        barrier.wait()
        result = engine.cast(1, 60, 100, now=0.0)
        with results_lock:
            results.append(result)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    successes = [r for r in results if r.success]
    failures = [r for r in results if not r.success]
    assert len(successes) == 5
    assert all(r.fail_reason is FailReason.INSUFFICIENT_MANA for r in failures)
    assert hero.mana == 0
    assert goblin.current_health == 10 ** 6 - 5


def test_overlapping_area_casts_do_not_deadlock(engine_factory, hero_factory, monster_factory):
    casters = [hero_factory(id=i, name=f"Hero {i}", mana=10 ** 6) for i in range(1, 5)]
    monsters = [
        monster_factory(100 + i, x=float(i % 3), current_health=10 ** 6, max_health=10 ** 6)
        for i in range(6)
    ]
    engine = engine_factory(casters, monsters, learn=[(c.id, 10) for c in casters])

    def worker(caster_id):
        for n in range(25):
            engine.cast(caster_id, 10, 0, now=float(n))

    threads = [threading.Thread(target=worker, args=(c.id,)) for c in casters]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert not any(t.is_alive() for t in threads)
    # Whirl: radius 3 around the origin reaches every monster, 20 damage each.
    for monster in monsters:
        assert monster.current_health == 10 ** 6 - 4 * 25 * 20


def test_tick_runs_alongside_casts(engine_factory, hero_factory):
    hero = hero_factory()
    engine = engine_factory([hero], learn=[(1, 4)])
    stop = threading.Event()

    def ticker():
        while not stop.is_set():
            engine.tick(0.5)

    t = threading.Thread(target=ticker)
    t.start()
    try:
        for n in range(50):
            engine.cast(1, 4, 0, now=float(n))
    finally:
        stop.set()
        t.join(timeout=10)

    engine.tick(1000.0)
    assert hero.strength == 10
    assert engine.active_buffs(1) == []
