import gzip
import os
import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, project_root)

CUBEMX_NS = "http://mcd.rou.st.com/modules.php?name=mcu"


def write_gz(path: Path, text: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    with gzip.open(path, "wb") as f:
        f.write(text.encode("utf-8"))


class FakeDatabase:
    """Writes part and GPIO descriptors laid out like a CubeMX database."""

    def __init__(self, root: Path):
        self.root = root

    def add_part(self, part_id: str, body: str, gpio_version="STM32F4-test",
                 line="STM32F4x5", package="LQFP64", namespace=CUBEMX_NS):
        ip = f'<IP Name="GPIO" Version="{gpio_version}"/>' if gpio_version else ""
        xmlns = f' xmlns="{namespace}"' if namespace else ""
        write_gz(
            self.root / "mcu" / f"{part_id}.xml.gz",
            f'<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<Mcu{xmlns} Line="{line}" Package="{package}" RefName="{part_id}">'
            f'<IP Name="RCC" Version="STM32F4_rcc_v1_0"/>{ip}{body}</Mcu>',
        )

    def add_gpio(self, version: str, body: str, namespace=CUBEMX_NS):
        xmlns = f' xmlns="{namespace}"' if namespace else ""
        write_gz(
            self.root / "mcu" / "IP" / f"GPIO-{version}_Modes.xml.gz",
            f'<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<IP{xmlns} Name="GPIO" Version="{version}">{body}</IP>',
        )


def af_signal(name: str, value: str) -> str:
    return (
        f'<PinSignal Name="{name}"><SpecificParameter Name="GPIO_AF">'
        f"<PossibleValue>{value}</PossibleValue></SpecificParameter></PinSignal>"
    )


def remap_signal(name: str, *remaps: str, leaf: bool = False) -> str:
    if leaf:
        blocks = "".join(f'<RemapBlock Name="{r}"/>' for r in remaps)
    else:
        blocks = "".join(
            f'<RemapBlock Name="{r}"><SpecificParameter Name="GPIO_AF">'
            f"<PossibleValue>__HAL_AFIO_{r}</PossibleValue></SpecificParameter></RemapBlock>"
            for r in remaps
        )
    return f'<PinSignal Name="{name}">{blocks}</PinSignal>'


def gpio_pin(name: str, *signals: str) -> str:
    return f'<GPIO_Pin Name="{name}">{"".join(signals)}</GPIO_Pin>'


def part_pin(name: str, position: str, *signals: str) -> str:
    body = "".join(f'<Signal Name="{s}"/>' for s in signals)
    return f'<Pin Name="{name}" Position="{position}" Type="I/O">{body}</Pin>'


@pytest.fixture
def database(tmp_path):
    return FakeDatabase(tmp_path / "db")
