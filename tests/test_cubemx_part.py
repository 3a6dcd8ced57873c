import pytest
from pydantic import ValidationError

from conftest import af_signal, gpio_pin, part_pin, remap_signal, write_gz
from adapters.cubemx.cubemx_part import (
    list_candidate_parts,
    part_descriptor_path,
    resolve_part,
)
from models.errors import PatternError, ResourceNotFound, StructuralError
from models.part import AdditionalFunction, AlternateFunction, GpioMode, Remap

VERSION = "STM32F4-test"


@pytest.fixture
def af_database(database):
    database.add_gpio(
        VERSION,
        gpio_pin(
            "PA0",
            af_signal("USART2_TX", "GPIO_AF7_USART2"),
            af_signal("TIM2_CH1", "GPIO_AF1_TIM2"),
        ),
    )
    database.add_part(
        "STM32F405RGTx",
        part_pin("PA0", "14", "ADC1_IN0", "TIM2_CH1", "USART2_TX", "GPIO")
        + part_pin("VDD", "19")
        + part_pin("PC13", "2", "RTC_AF1"),
    )
    return database


def test_descriptor_path_follows_database_layout(tmp_path):
    assert part_descriptor_path(tmp_path, "STM32F405RGTx") == (
        tmp_path / "mcu" / "STM32F405RGTx.xml.gz"
    )


def test_resolve_af_part(af_database):
    part = resolve_part(af_database.root, "STM32F405RGTx")

    assert part.part == "STM32F405RGTx"
    assert part.line == "STM32F4x5"
    assert part.package == "LQFP64"
    assert part.gpio_mode is GpioMode.ALTERNATE_FUNCTION
    assert [(p.name, p.position) for p in part.pins] == [
        ("PA0", "14"),
        ("VDD", "19"),
        ("PC13", "2"),
    ]

    pa0 = part.pins[0]
    # Signal order is document order, the GPIO signal itself is skipped.
    assert [(s.name, s.mapping) for s in pa0.signals] == [
        ("ADC1_IN0", AdditionalFunction()),
        ("TIM2_CH1", AlternateFunction(index=1)),
        ("USART2_TX", AlternateFunction(index=7)),
    ]
    assert part.pins[1].signals == ()
    # Pin unknown to the GPIO descriptor.
    assert part.pins[2].signals[0].mapping == AdditionalFunction()


def test_summary(af_database):
    part = resolve_part(af_database.root, "STM32F405RGTx")
    assert part.summary() == "STM32F405RGTx: STM32F4x5 LQFP64"


def test_part_is_immutable(af_database):
    part = resolve_part(af_database.root, "STM32F405RGTx")
    with pytest.raises(ValidationError):
        part.line = "other"


def test_resolve_without_namespace(database):
    database.add_gpio(
        VERSION, gpio_pin("PA0", af_signal("USART2_TX", "GPIO_AF7_USART2")), namespace=None
    )
    database.add_part("STM32F4", part_pin("PA0", "A0", "USART2_TX"), namespace=None)

    part = resolve_part(database.root, "STM32F4")

    assert part.pins[0].position == "A0"
    assert part.pins[0].signals[0].mapping == AlternateFunction(index=7)


def test_resolve_remap_part(database):
    database.add_gpio(
        "STM32F103-test",
        gpio_pin("PB2", remap_signal("SPI1_MOSI", "AFIO_SPI1_REMAP2", "AFIO_SPI1_REMAP0")),
    )
    database.add_part(
        "STM32F103C8Tx",
        part_pin("PB2", "20", "SPI1_MOSI", "BOOT1"),
        gpio_version="STM32F103-test",
        line="STM32F103",
    )

    part = resolve_part(database.root, "STM32F103C8Tx")

    assert part.gpio_mode is GpioMode.REMAP
    assert [s.mapping for s in part.pins[0].signals] == [
        Remap(indices=(2, 0)),
        AdditionalFunction(),
    ]


def test_missing_part(database):
    with pytest.raises(ResourceNotFound):
        resolve_part(database.root, "STM32F999")


def test_missing_gpio_descriptor(database):
    database.add_part("STM32F4", part_pin("PA0", "1"))
    with pytest.raises(ResourceNotFound):
        resolve_part(database.root, "STM32F4")


def test_missing_gpio_ip(database):
    database.add_part("STM32F4", part_pin("PA0", "1"), gpio_version=None)
    with pytest.raises(StructuralError, match="missing GPIO IP"):
        resolve_part(database.root, "STM32F4")


def test_missing_gpio_version(database):
    write_gz(
        database.root / "mcu" / "STM32F4.xml.gz",
        '<Mcu Line="STM32F4" Package="LQFP64"><IP Name="GPIO"/></Mcu>',
    )
    with pytest.raises(StructuralError) as excinfo:
        resolve_part(database.root, "STM32F4")
    assert (excinfo.value.tag, excinfo.value.attribute) == ("IP", "Version")


def test_missing_line(database):
    write_gz(database.root / "mcu" / "STM32F4.xml.gz", '<Mcu Package="LQFP64"/>')
    with pytest.raises(StructuralError) as excinfo:
        resolve_part(database.root, "STM32F4")
    assert (excinfo.value.tag, excinfo.value.attribute) == ("Mcu", "Line")


@pytest.mark.parametrize(
    "pin, attribute",
    [
        ('<Pin Name="PA0"/>', "Position"),
        ('<Pin Position="1"/>', "Name"),
        ('<Pin Name="PA0" Position="1"><Signal/></Pin>', "Name"),
    ],
)
def test_missing_pin_attributes(database, pin, attribute):
    database.add_gpio(VERSION, gpio_pin("PA0"))
    database.add_part("STM32F4", pin)
    with pytest.raises(StructuralError) as excinfo:
        resolve_part(database.root, "STM32F4")
    assert excinfo.value.attribute == attribute


def test_list_candidate_parts(database):
    for part_id in ("STM32F103C8Tx", "STM32F405RGTx", "STM32F407VGTx"):
        database.add_part(part_id, "")
    (database.root / "mcu" / "families.xml").write_text("<Families/>")

    assert list_candidate_parts(database.root, "F40") == ["STM32F405RGTx", "STM32F407VGTx"]
    assert list_candidate_parts(database.root, "^STM32F1") == ["STM32F103C8Tx"]
    assert list_candidate_parts(database.root, "L4") == []


def test_list_candidate_parts_bad_pattern(database):
    database.add_part("STM32F405RGTx", "")
    with pytest.raises(PatternError):
        list_candidate_parts(database.root, "STM32(")


def test_list_candidate_parts_missing_database(tmp_path):
    with pytest.raises(ResourceNotFound):
        list_candidate_parts(tmp_path / "nowhere", ".")
