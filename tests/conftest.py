import pytest

from trail_pipeline.models import Point


def pts(*coords: tuple[float, float]) -> list[Point]:
    """Build points from (lon, lat) tuples."""
    return [Point(lon=lon, lat=lat) for lon, lat in coords]


TRAIL_KML = """\
<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <Placemark>
      <name>Springer to Hightower</name>
      <LineString>
        <coordinates>-84.19,34.63,1000 -84.18,34.70,1100 -84.17,34.80,1200</coordinates>
      </LineString>
    </Placemark>
    <Placemark>
      <name>Hightower to Blood Mountain</name>
      <LineString>
        <coordinates>-84.16,35.00 -84.165,34.90 -84.17,34.80</coordinates>
      </LineString>
    </Placemark>
    <Placemark><Point><coordinates>-84.19,34.63,1000</coordinates></Point></Placemark>
  </Document>
</kml>"""


@pytest.fixture
def trail_kml() -> bytes:
    return TRAIL_KML.encode()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    """Records requested delays instead of waiting."""

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep
