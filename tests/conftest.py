import pytest

from src.zone_matrix.services.geography.index import GeographyIndex

SAMPLE_ROWS = [
    {"pincode": "110001", "state": "Delhi", "city": "New Delhi", "zone": "N1"},
    {"pincode": "110075", "state": "Delhi", "city": "Dwarka", "zone": "N1"},
    {"pincode": "143001", "state": "Punjab", "city": "Amritsar", "zone": "N2"},
    {"pincode": "141001", "state": "Punjab", "city": "Ludhiana", "zone": "N2"},
    {"pincode": "122001", "state": "Haryana", "city": "Gurgaon", "zone": "N3"},
    {"pincode": "160017", "state": "Chandigarh", "city": "Chandigarh", "zone": ""},
    {"pincode": "560001", "state": "Karnataka", "city": "Bengaluru", "zone": "S1"},
    {"pincode": "570001", "state": "Karnataka", "city": "Mysuru", "zone": "S1"},
    {"pincode": "682001", "state": "Kerala", "city": "Kochi", "zone": "S2"},
    {"pincode": "400001", "state": "Maharashtra", "city": "Mumbai", "zone": "W1"},
    {"pincode": "411001", "state": "Maharashtra", "city": "Pune", "zone": "W1"},
    {"pincode": "431001", "state": "Maharashtra", "city": "Aurangabad", "zone": "W2"},
    {"pincode": "824101", "state": "Bihar", "city": "Aurangabad", "zone": "E1"},
    {"pincode": "700001", "state": "West Bengal", "city": "Kolkata", "zone": "E1"},
    {"pincode": "781001", "state": "Assam", "city": "Guwahati", "zone": "NE1"},
    {"pincode": "462001", "state": "Madhya Pradesh", "city": "Bhopal", "zone": "C1"},
    {"pincode": "132001", "state": "Haryana", "city": "Karnal", "zone": "C2"},
    # rejected rows
    {"pincode": "999999", "state": "NaN", "city": "Nowhere", "zone": "N1"},
    {"pincode": "12345", "state": "Delhi", "city": "Short Pin", "zone": "N1"},
    {"pincode": "110002", "state": "Delhi", "city": "", "zone": "N1"},
]


@pytest.fixture
def index() -> GeographyIndex:
    return GeographyIndex.from_rows(SAMPLE_ROWS)


@pytest.fixture
def sample_rows() -> list[dict]:
    return [dict(row) for row in SAMPLE_ROWS]
