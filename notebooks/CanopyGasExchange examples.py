# ---
# jupyter:
#   jupytext:
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.16.1
#   kernelspec:
#     display_name: Python 3 (ipykernel)
#     language: python
#     name: python3
# ---

# %%
import numpy as np
import matplotlib.pyplot as plt

# %%
from canopyflux.canopygasexchange import CanopyGasExchange
from canopyflux.canopylayers import CanopyLayers
from canopyflux.climate import ClimateForcing
from canopyflux.cohort import Cohort, SpeciesParams, SpeciesTable, PT_C3, PT_C4
from canopyflux.params import SimulationConfig, load_params

# %% [markdown]
# # Canopy Gas Exchange
#
# Below is an example of how to calculate cohort photosynthesis, leaf respiration and transpiration of a vegetation tile.
#
# To calculate canopy gas exchange we first require a description of:
#
#  - The cohorts. Each cohort is a group of identical trees with a leaf area, crown area, density and canopy layer.
#  - The species. Each cohort refers to a species holding its physiological parameters.
#  - The photosynthesis closure. This is either the conductance-limited (Leuning) closure or the acclimated-optimality (P-model) closure.

# %% [markdown]
# ## Define the species and the stand

# %%
species = SpeciesTable({
    0: SpeciesParams(pt=PT_C3, Vmax=35e-6, m_cond=7.0, do1=0.15),
    1: SpeciesParams(pt=PT_C4, Vmax=20e-6, m_cond=4.0, do1=0.15),
})

def new_stand():
    return [
        Cohort(leafarea=12.0, crownarea=4.0, nindivs=0.15, layer=1, species=0, W_supply=200.0),
        Cohort(leafarea=5.0, crownarea=2.0, nindivs=0.20, layer=2, species=0, W_supply=80.0),
        Cohort(leafarea=1.5, crownarea=0.5, nindivs=0.60, layer=3, species=1, W_supply=20.0),
    ]

# %% [markdown]
# ## Light partitioning
#
# Light reaching each layer is the light reaching the layer above minus what was absorbed there.

# %%
canopy = CanopyLayers()
light = canopy.calculate(new_stand())

print("Fraction of light at the top of each layer:", np.round(light.f_light[:4], 3))
print("Crown fAPAR of each cohort:", np.round(light.fapar_tree, 3))

# %% [markdown]
# ## Conductance-limited closure, single timestep

# %%
forcing = ClimateForcing(radiation=450.0, Tair=295.15, RH=0.6)

gx_leuning = CanopyGasExchange.from_config(SimulationConfig(method_photosynth="gs_leuning"), species)
stand = new_stand()
gx_leuning.calculate(forcing, stand, init=True)

for i, cc in enumerate(stand):
    print("Cohort %d: gpp = %1.4f kg C, resl = %1.4f kg C, transp = %1.2f kg H2O, w_scale = %1.2f" % (i, cc.gpp, cc.resl, cc.transp, cc.w_scale))

# %% [markdown]
# ### Response to water supply

# %%
_W_supply = np.linspace(0.5, 60.0, 40)
_gpp = np.zeros(_W_supply.size)
_transp = np.zeros(_W_supply.size)
_w_scale = np.zeros(_W_supply.size)

for i, ws in enumerate(_W_supply):
    stand = new_stand()
    stand[0].W_supply = ws
    gx_leuning.calculate(forcing, stand, init=True)
    _gpp[i], _transp[i], _w_scale[i] = stand[0].gpp, stand[0].transp, stand[0].w_scale

fig, axes = plt.subplots(1, 3, figsize=(12, 3.5))
axes[0].plot(_W_supply, _gpp)
axes[0].set_ylabel("GPP (kg C ind-1 d-1)")
axes[1].plot(_W_supply, _transp)
axes[1].plot(_W_supply, _W_supply, c="0.5", linestyle=":")
axes[1].set_ylabel("Transpiration (kg H2O ind-1 d-1)")
axes[2].plot(_W_supply, _w_scale)
axes[2].set_ylabel("Water stress diagnostic (-)")
for ax in axes:
    ax.set_xlabel("Water supply (kg H2O ind-1 d-1)")
plt.tight_layout()

# %% [markdown]
# ## Acclimated-optimality closure, seasonal run
#
# The P-model closure keeps an environmental memory of CO2, temperature, vapor pressure deficit and pressure, smoothed with the acclimation time scale.

# %%
params = load_params(tau_acclim=30.0)
gx_pmodel = CanopyGasExchange.from_config(SimulationConfig(method_photosynth="pmodel"), species, params=params)
memory = gx_pmodel.new_memory()

ndays = 365
_doy = np.arange(ndays)
_Tair = 285.15 + 10.0*np.sin(2*np.pi*(_doy - 100)/365)
_radiation = 200.0 + 100.0*np.sin(2*np.pi*(_doy - 80)/365)

stand = new_stand()
_gpp_total = np.zeros(ndays)
_temp_memory = np.zeros(ndays)

for iday in range(ndays):
    forcing = ClimateForcing(radiation=_radiation[iday], Tair=_Tair[iday], RH=0.7)
    gx_pmodel.calculate(forcing, stand, init=(iday == 0), memory=memory)
    _gpp_total[iday] = gx_pmodel.canopy_totals(stand)["gpp"]
    _temp_memory[iday] = memory.temp

fig, axes = plt.subplots(1, 2, figsize=(10, 3.5))
axes[0].plot(_doy, _Tair - 273.15, label="Air temperature")
axes[0].plot(_doy, _temp_memory, label="Acclimated temperature")
axes[0].set_ylabel("Temperature (oC)")
axes[0].legend()
axes[1].plot(_doy, _gpp_total*1e3)
axes[1].set_ylabel("Stand GPP (g C m-2 d-1)")
for ax in axes:
    ax.set_xlabel("Day of year")
plt.tight_layout()
