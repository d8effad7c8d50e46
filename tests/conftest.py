import pytest

from plyfinder.models import ProductRecord


@pytest.fixture
def gold():
    return ProductRecord(
        name='GreenPly Gold',
        brand='GreenPly',
        sub_brand='Gold',
        size='8x4',
        thickness='12mm',
        type='MR',
        selling_price='85 per sqft',
        category='Plywood',
        meta_keywords=('greenply', 'grinply', 'grenplai'),
    )


@pytest.fixture
def veneer():
    """Shares nothing with the GreenPly queries used in the tests."""
    return ProductRecord(
        name='Teak Veneer Sheet',
        brand='Austin',
        size='8x4',
        thickness='4mm',
        type='Decorative',
        selling_price='60 per sqft',
        category='Plywood',
    )
