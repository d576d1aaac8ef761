import numpy as np
import pytest

from canopyflux.climate import ClimateForcing
from canopyflux.cohort import SpeciesParams, PT_C4
from canopyflux.optimality import EnvironmentalMemory, OptimalityPhotosynthesis
from canopyflux.params import GPPParams

def test_memory_initialised_with_raw_forcing(forcing):
    memory = EnvironmentalMemory()
    assert not memory.initialised
    memory.update(forcing, True, 30.0)
    assert memory.initialised
    assert memory.co2 == forcing.CO2*1.0e6
    assert memory.temp == forcing.TairC
    assert memory.vpd == forcing.vpd
    assert memory.patm == forcing.P_air

def test_memory_requires_initialisation(forcing):
    memory = EnvironmentalMemory()
    with pytest.raises(ValueError) as exp:
        memory.update(forcing, False, 30.0)
    assert "not initialised" in str(exp.value)

def test_memory_converges_without_overshoot():
    memory = EnvironmentalMemory()
    memory.update(ClimateForcing(radiation=300.0, Tair=283.15, RH=0.6), True, 30.0)

    warm = ClimateForcing(radiation=300.0, Tair=293.15, RH=0.6)
    previous = memory.temp
    for _ in range(200):
        memory.update(warm, False, 30.0)
        assert previous < memory.temp <= warm.TairC
        previous = memory.temp
    assert memory.temp == pytest.approx(warm.TairC, abs=0.02)

def test_memory_fixed_point(forcing):
    memory = EnvironmentalMemory()
    memory.update(forcing, True, 30.0)
    state = (memory.co2, memory.temp, memory.vpd, memory.patm)
    for _ in range(10):
        memory.update(forcing, False, 30.0)
    assert (memory.co2, memory.temp, memory.vpd, memory.patm) == state

def test_memory_time_constant(forcing):
    memory = EnvironmentalMemory()
    memory.update(ClimateForcing(radiation=300.0, Tair=283.15, RH=0.6), True, 30.0)
    memory.update(forcing, False, 1.0e-6)
    assert memory.temp == pytest.approx(forcing.TairC)

def test_closure_fluxes(forcing, cohort):
    closure = OptimalityPhotosynthesis()
    memory = closure.new_memory()
    closure.prepare_timestep(forcing, [cohort], True, memory)

    fluxes = closure.calculate_cohort(forcing, cohort, SpeciesParams(), 1.0, 0.7, 86400.0, memory)
    assert fluxes.gpp > 0.0
    assert fluxes.resl > 0.0
    assert fluxes.An_op == 0.0
    assert fluxes.An_cl == 0.0
    assert fluxes.transp == 0.0
    assert fluxes.w_scale == -9999.0

def test_closure_scales_with_light(forcing, cohort):
    closure = OptimalityPhotosynthesis()
    memory = closure.new_memory()
    closure.prepare_timestep(forcing, [cohort], True, memory)
    sunlit = closure.calculate_cohort(forcing, cohort, SpeciesParams(), 1.0, 0.7, 86400.0, memory)
    shaded = closure.calculate_cohort(forcing, cohort, SpeciesParams(), 0.5, 0.7, 86400.0, memory)
    assert shaded.gpp == pytest.approx(0.5*sunlit.gpp)

def test_closure_c4_species(forcing, cohort):
    closure = OptimalityPhotosynthesis()
    memory = closure.new_memory()
    closure.prepare_timestep(forcing, [cohort], True, memory)
    c3 = closure.calculate_cohort(forcing, cohort, SpeciesParams(), 1.0, 0.7, 86400.0, memory)
    c4 = closure.calculate_cohort(forcing, cohort, SpeciesParams(pt=PT_C4), 1.0, 0.7, 86400.0, memory)
    assert c4.gpp > c3.gpp

def test_closure_inactive_when_cold(cohort):
    cold = ClimateForcing(radiation=300.0, Tair=263.15, RH=0.6)
    closure = OptimalityPhotosynthesis()
    memory = closure.new_memory()
    closure.prepare_timestep(cold, [cohort], True, memory)
    fluxes = closure.calculate_cohort(cold, cohort, SpeciesParams(), 1.0, 0.7, 86400.0, memory)
    assert fluxes.gpp == 0.0
    assert fluxes.resl == 0.0

def test_closure_inactive_in_darkness(cohort):
    dark = ClimateForcing(radiation=0.0, Tair=293.15, RH=0.6)
    closure = OptimalityPhotosynthesis()
    memory = closure.new_memory()
    closure.prepare_timestep(dark, [cohort], True, memory)
    assert not closure.is_active(dark, memory)
    fluxes = closure.calculate_cohort(dark, cohort, SpeciesParams(), 1.0, 0.7, 86400.0, memory)
    assert fluxes.gpp == 0.0

def test_closure_uses_model_time_constant():
    closure = OptimalityPhotosynthesis(params=GPPParams(tau_acclim=5.0))
    memory = EnvironmentalMemory()
    closure.prepare_timestep(ClimateForcing(radiation=300.0, Tair=283.15, RH=0.6), [], True, memory)
    closure.prepare_timestep(ClimateForcing(radiation=300.0, Tair=293.15, RH=0.6), [], False, memory)
    assert memory.temp == pytest.approx(10.0 + 10.0*(1.0 - np.exp(-1.0/5.0)))
