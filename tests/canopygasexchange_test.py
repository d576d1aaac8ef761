import attrs
import numpy as np
import pytest

from canopyflux.canopygasexchange import CanopyGasExchange
from canopyflux.climate import ClimateForcing
from canopyflux.cohort import Cohort, W_SCALE_INAPPLICABLE
from canopyflux.leafgasexchange import LeuningPhotosynthesis
from canopyflux.optimality import EnvironmentalMemory, OptimalityPhotosynthesis
from canopyflux.params import SimulationConfig, GPPParams

STRUCTURAL_FIELDS = ("leafarea", "crownarea", "nindivs", "layer", "species", "status", "W_supply", "extinct", "leaf_wet")

@pytest.fixture(scope="function")
def leuning(species_table):
    return CanopyGasExchange.from_config(SimulationConfig(method_photosynth="gs_leuning"), species_table)

@pytest.fixture(scope="function")
def pmodel(species_table):
    return CanopyGasExchange.from_config(SimulationConfig(method_photosynth="pmodel"), species_table)

def assert_no_fluxes(cc):
    assert cc.An_op == 0.0
    assert cc.An_cl == 0.0
    assert cc.gpp == 0.0
    assert cc.transp == 0.0
    assert cc.resl == 0.0
    assert cc.w_scale == W_SCALE_INAPPLICABLE

def test_from_config_selects_closure(leuning, pmodel):
    assert isinstance(leuning.Photosynthesis, LeuningPhotosynthesis)
    assert isinstance(pmodel.Photosynthesis, OptimalityPhotosynthesis)
    assert leuning.new_memory() is None
    assert isinstance(pmodel.new_memory(), EnvironmentalMemory)

def test_from_config_passes_params(species_table):
    params = GPPParams(tau_acclim=10.0)
    gx = CanopyGasExchange.from_config(SimulationConfig(), species_table, params=params)
    assert gx.Photosynthesis.params is params

def test_caller_memory_follows_model_time_constant(species_table, cohort):
    gx = CanopyGasExchange.from_config(SimulationConfig(), species_table, params=GPPParams(tau_acclim=5.0))
    memory = EnvironmentalMemory()
    gx.calculate(ClimateForcing(radiation=300.0, Tair=283.15, RH=0.6), [cohort], init=True, memory=memory)
    gx.calculate(ClimateForcing(radiation=300.0, Tair=293.15, RH=0.6), [cohort], init=False, memory=memory)
    assert memory.temp == pytest.approx(10.0 + 10.0*(1.0 - np.exp(-1.0/5.0)))

def test_crownless_cohort(leuning, forcing):
    cc = Cohort(leafarea=2.0, crownarea=0.0, W_supply=100.0)
    leuning.calculate(forcing, [cc], init=True)
    assert_no_fluxes(cc)

def test_leuning_single_cohort(leuning, forcing, cohort):
    light = leuning.calculate(forcing, [cohort], init=True)
    assert light.light_fraction(1) == 1.0
    assert cohort.An_op > 0.0
    assert cohort.An_cl > 0.0
    assert cohort.gpp > 0.0
    assert cohort.resl > 0.0
    assert 0.0 < cohort.transp < cohort.W_supply
    assert cohort.w_scale == 1.0

def test_leuning_leafless_cohort(leuning, forcing, leafless_cohort):
    leuning.calculate(forcing, [leafless_cohort], init=True)
    assert_no_fluxes(leafless_cohort)

def test_leuning_zero_leaf_area(leuning, forcing):
    cc = Cohort(leafarea=0.0, crownarea=1.0, W_supply=10.0)
    leuning.calculate(forcing, [cc], init=True)
    assert_no_fluxes(cc)

def test_leuning_water_limited(leuning, forcing, cohort):
    leuning.calculate(forcing, [cohort], init=True)
    demand = cohort.transp
    gpp_unlimited = cohort.gpp

    cohort.W_supply = 0.5*demand
    leuning.calculate(forcing, [cohort], init=False)
    assert cohort.transp == pytest.approx(0.5*demand)
    assert cohort.w_scale == pytest.approx(0.5)
    assert cohort.gpp < gpp_unlimited

def test_leuning_water_supply_collaborator(species_table, forcing):
    calls = []
    def supply(cohorts):
        calls.append(len(cohorts))
        for cc in cohorts:
            cc.W_supply = 50.0
    gx = CanopyGasExchange.from_config(SimulationConfig(method_photosynth="gs_leuning"), species_table, WaterSupply=supply)
    cohorts = [Cohort(leafarea=2.0, crownarea=1.0, layer=1), Cohort(leafarea=1.0, crownarea=1.0, layer=2)]
    gx.calculate(forcing, cohorts, init=True)
    assert calls == [2]
    assert all(cc.transp > 0.0 for cc in cohorts)

def test_pmodel_requires_memory(pmodel, forcing, cohort):
    with pytest.raises(ValueError):
        pmodel.calculate(forcing, [cohort], init=True)

def test_pmodel_single_cohort(pmodel, forcing, cohort):
    memory = pmodel.new_memory()
    pmodel.calculate(forcing, [cohort], init=True, memory=memory)
    assert cohort.gpp > 0.0
    assert cohort.resl > 0.0
    assert cohort.An_op == 0.0
    assert cohort.transp == 0.0
    assert cohort.w_scale == W_SCALE_INAPPLICABLE

def test_pmodel_leafless_cohort(pmodel, forcing, leafless_cohort):
    memory = pmodel.new_memory()
    pmodel.calculate(forcing, [leafless_cohort], init=True, memory=memory)
    assert_no_fluxes(leafless_cohort)
    assert memory.initialised

def test_understorey_receives_less_light(pmodel, forcing):
    overstorey = Cohort(leafarea=4.0, crownarea=1.0, nindivs=0.8, layer=1)
    understorey = Cohort(leafarea=4.0, crownarea=1.0, nindivs=0.8, layer=2)
    memory = pmodel.new_memory()
    pmodel.calculate(forcing, [overstorey, understorey], init=True, memory=memory)
    assert 0.0 < understorey.gpp < overstorey.gpp

def test_structural_fields_untouched(leuning, forcing, cohort):
    before = {name: getattr(cohort, name) for name in STRUCTURAL_FIELDS}
    leuning.calculate(forcing, [cohort], init=True)
    assert {name: getattr(cohort, name) for name in STRUCTURAL_FIELDS} == before

def test_unknown_species(leuning, forcing):
    with pytest.raises(KeyError) as exp:
        leuning.calculate(forcing, [Cohort(leafarea=1.0, species=7)], init=True)
    assert "Species id 7" in str(exp.value)

def test_debug_override(species_table, forcing, cohort):
    config = SimulationConfig(method_photosynth="gs_leuning", debug_lue_override=True)
    gx = CanopyGasExchange.from_config(config, species_table)
    light = gx.calculate(forcing, [cohort], init=True)
    expected = gx.lue_fix*forcing.radiation*cohort.crownarea*light.fapar_tree[0]*config.step_seconds
    assert cohort.gpp == pytest.approx(expected)
    assert cohort.resl == pytest.approx(0.1*expected)
    assert cohort.w_scale == 1.0

def test_debug_override_is_logged(species_table, caplog):
    with caplog.at_level("WARNING"):
        CanopyGasExchange.from_config(SimulationConfig(debug_lue_override=True), species_table)
    assert "override" in caplog.text

def test_canopy_totals(leuning, forcing):
    cohorts = [
        Cohort(leafarea=2.0, crownarea=1.0, nindivs=0.3, W_supply=100.0),
        Cohort(leafarea=1.0, crownarea=0.5, nindivs=0.6, W_supply=100.0, layer=2),
    ]
    leuning.calculate(forcing, cohorts, init=True)
    totals = leuning.canopy_totals(cohorts)
    assert totals["gpp"] == pytest.approx(0.3*cohorts[0].gpp + 0.6*cohorts[1].gpp)
    assert totals["transp"] == pytest.approx(0.3*cohorts[0].transp + 0.6*cohorts[1].transp)
    assert totals["resl"] > 0.0

def test_timestep_length(species_table, forcing):
    hourly = CanopyGasExchange.from_config(SimulationConfig(method_photosynth="gs_leuning", step_seconds=3600.0), species_table)
    daily = CanopyGasExchange.from_config(SimulationConfig(method_photosynth="gs_leuning"), species_table)
    c_hourly = Cohort(leafarea=2.0, W_supply=100.0)
    c_daily = attrs.evolve(c_hourly, W_supply=2400.0)
    hourly.calculate(forcing, [c_hourly], init=True)
    daily.calculate(forcing, [c_daily], init=True)
    assert c_daily.gpp == pytest.approx(24.0*c_hourly.gpp)
