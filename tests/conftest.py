import pytest

from canopyflux.climate import ClimateForcing
from canopyflux.cohort import Cohort, SpeciesParams, SpeciesTable, LEAF_OFF, PT_C3, PT_C4

@pytest.fixture(scope="module")
def species_table():
    return SpeciesTable({0: SpeciesParams(pt=PT_C3), 1: SpeciesParams(pt=PT_C4)})

@pytest.fixture(scope="function")
def forcing():
    # Clear-sky midday forcing at 20oC
    return ClimateForcing(radiation=500.0, Tair=293.15, RH=0.8)

@pytest.fixture(scope="function")
def cohort():
    # Single layer-1 cohort with ample water supply (kg H2O per individual per day)
    return Cohort(leafarea=2.5, crownarea=1.0, nindivs=0.5, layer=1, species=0, W_supply=100.0)

@pytest.fixture(scope="function")
def leafless_cohort(cohort):
    cohort.status = LEAF_OFF
    return cohort
