import pytest

from airbrakes.persistent import (
    Eeprom,
    PersistentStore,
    Setting,
    align,
    circular_shift,
    merge_hashes,
    str_hash,
)


def make_settings():
    return [
        Setting("count", 0, "<I"),
        Setting("flag", False, "<?"),
        Setting("rate", -2.5, "<f"),
        Setting("file", "log.txt", "64s"),
        Setting("detect", (10.0, 30.0, 100.0, 3, 10000), "<fffII"),
    ]


def test_str_hash_of_empty_string_is_seed():
    assert str_hash("") == 5381


def test_str_hash_distinguishes_names():
    assert str_hash("launch") == str_hash("launch")
    assert str_hash("launch") != str_hash("apogee")
    assert 0 <= str_hash("a long name " * 50) <= 0xFFFFFFFF


@pytest.mark.parametrize("value", [0, 1, 0x80000000, 0xDEADBEEF, 0xFFFFFFFF])
def test_circular_shift_invariants(value):
    assert circular_shift(value, 32) == value
    assert circular_shift(value, 0) == value
    assert circular_shift(circular_shift(value, 13), 19) == value
    assert circular_shift(circular_shift(value, 13), -13) == value
    assert bin(circular_shift(value, 7)).count("1") == bin(value).count("1")


def test_merge_of_equal_hashes_is_zero():
    assert merge_hashes(0x12345678, 0x12345678) == 0


@pytest.mark.parametrize("address", range(0, 20))
@pytest.mark.parametrize("alignment", [1, 2, 4, 8])
def test_align_rounds_up(address, alignment):
    result = align(address, alignment)
    assert result % alignment == 0
    assert address <= result < address + alignment


def test_align_rejects_zero():
    with pytest.raises(ValueError):
        align(3, 0)


@pytest.mark.parametrize(
    "setting, value",
    [
        (Setting("u", 0, "<I"), 123456),
        (Setting("b", False, "<?"), True),
        (Setting("f", 0.0, "<f"), 2.5),
        (Setting("s", "", "16s"), "flight.csv"),
        (Setting("t", (0.0, 0.0, 0.0, 0, 0), "<fffII"), (1.5, -10.0, 0.25, 3, 400)),
    ],
)
def test_setting_round_trip(setting, value):
    data = setting.encode(value)
    assert len(data) == setting.size
    assert setting.decode(data) == value


def test_setting_hash_depends_on_size_and_name():
    assert Setting("x", 0, "<I").hash() - Setting("x", 0, "<H").hash() == 2
    assert Setting("x", 0, "<I").hash() != Setting("y", 0, "<I").hash()
    assert Setting("x", 0, "<I").hash() == Setting("x", 7, "<I").hash()


def test_setting_rejects_bad_default_and_format():
    with pytest.raises(ValueError):
        Setting("byte", 300, "<B")
    with pytest.raises(ValueError):
        Setting("broken", 0, "<z")


def test_eeprom_round_trip_and_bounds():
    eeprom = Eeprom(32)
    eeprom.write(4, b"abc")
    assert eeprom.read(4, 3) == b"abc"
    assert len(eeprom) == 32
    with pytest.raises(IndexError):
        eeprom.read(30, 4)
    with pytest.raises(IndexError):
        eeprom.write(-1, b"x")


def test_first_restore_writes_defaults():
    eeprom = Eeprom()
    store = PersistentStore(eeprom, make_settings())
    assert store.restore() is True
    assert store["count"] == 0
    assert store["file"] == "log.txt"
    again = PersistentStore(eeprom, make_settings())
    assert again.restore() is False
    assert again["file"] == "log.txt"
    assert again["detect"] == (10.0, 30.0, 100.0, 3, 10000)


def test_saved_values_survive_reload():
    eeprom = Eeprom()
    store = PersistentStore(eeprom, make_settings())
    store.restore()
    store["count"] = 42
    store["flag"] = True
    store["file"] = "flight.csv"
    store["rate"] = 0.5
    store.save()
    reloaded = PersistentStore(eeprom, make_settings())
    assert reloaded.restore() is False
    assert reloaded["count"] == 42
    assert reloaded["flag"] is True
    assert reloaded["file"] == "flight.csv"
    assert reloaded["rate"] == 0.5


def test_layout_change_resets_to_defaults():
    eeprom = Eeprom()
    store = PersistentStore(eeprom, make_settings())
    store.restore()
    store["count"] = 9
    store.save()
    changed = PersistentStore(eeprom, make_settings() + [Setting("extra", 1, "<i")])
    assert changed.restore() is True
    assert changed["count"] == 0
    assert changed["extra"] == 1


def test_save_only_writes_changed_bytes():
    store = PersistentStore(Eeprom(), make_settings())
    store.restore()
    assert store.save() == 0
    store["count"] = 7
    assert store.save() > 0
    assert store.save() == 0


def test_restore_defaults_overrides_values():
    eeprom = Eeprom()
    store = PersistentStore(eeprom, make_settings())
    store.restore()
    store["count"] = 5
    store.save()
    store.restore_defaults()
    assert store["count"] == 0
    reloaded = PersistentStore(eeprom, make_settings())
    assert reloaded.restore() is False
    assert reloaded["count"] == 0


def test_addresses_are_aligned_and_do_not_overlap():
    settings = make_settings()
    store = PersistentStore(Eeprom(), settings)
    addresses = store.addresses()
    assert list(addresses) == [s.name for s in settings]
    ordered = [addresses[s.name] for s in settings]
    assert all(address % 4 == 0 for address in ordered)
    assert ordered[0] >= 4
    for setting, address, following in zip(settings, ordered, ordered[1:]):
        assert following >= address + setting.size


def test_hash_depends_on_order():
    first, second = Setting("a", 0, "<I"), Setting("b", 0, "<I")
    eeprom = Eeprom()
    forward = PersistentStore(eeprom, [first, second])
    assert forward.hash() == PersistentStore(eeprom, [first, second]).hash()
    assert forward.hash() != PersistentStore(eeprom, [second, first]).hash()


def test_too_many_bytes_rejected():
    with pytest.raises(ValueError):
        PersistentStore(Eeprom(), [Setting("big", "x", "2000s")])


def test_duplicate_names_rejected():
    with pytest.raises(ValueError):
        PersistentStore(Eeprom(), [Setting("a", 0, "<I"), Setting("a", 1, "<I")])


def test_unknown_and_invalid_items():
    store = PersistentStore(Eeprom(), make_settings())
    with pytest.raises(KeyError):
        store["missing"]
    with pytest.raises(KeyError):
        store["missing"] = 1
    with pytest.raises(ValueError):
        store["count"] = -1
    assert store["count"] == 0
    assert "rate" in store