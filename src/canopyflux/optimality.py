"""
Acclimated optimality photosynthesis: environmental memory and the P-model closure of the canopy flux driver
"""

import logging
from typing import Callable
from attrs import define, field
from canopyflux.biophysics_funcs import dampen_variability, ftemp_inst_rd
from canopyflux.cohort import CohortFluxes, PT_C4
from canopyflux.params import GPPParams
from canopyflux.pmodel import PModel

logger = logging.getLogger(__name__)

@define
class EnvironmentalMemory:
    """
    Exponentially smoothed environmental drivers, representing the time scale at which photosynthetic
    capacity acclimates (e.g. Rubisco turnover). One instance belongs to one simulated site and is
    passed to the canopy flux driver every timestep. The acclimation time constant is not part of
    the state, it is supplied by the closure from the model-wide parameters on every update.
    """
    co2: float = field(default=None)    ## CO2 concentration (ppm)
    temp: float = field(default=None)   ## Air temperature (degC)
    vpd: float = field(default=None)    ## Vapor pressure deficit (Pa)
    patm: float = field(default=None)   ## Atmospheric pressure (Pa)

    @property
    def initialised(self):
        return self.co2 is not None

    def update(self, forcing, init, tau):
        """
        Relaxes the memory toward the current forcing. On the first timestep of a run (init) the
        memory is set to the forcing itself.

        Parameters
        ----------
        forcing: ClimateForcing
            Forcing of the current timestep
        init: bool
            True on the first timestep of the run
        tau: float
            Acclimation time constant, in timesteps (d for a daily model)

        Raises
        ------
        ValueError
            If the memory has never been initialised and init is False
        """
        co2 = forcing.CO2*1.0e6
        temp = forcing.TairC
        if init:
            self.co2 = co2
            self.temp = temp
            self.vpd = forcing.vpd
            self.patm = forcing.P_air
        elif not self.initialised:
            raise ValueError("Environmental memory is not initialised, the first timestep must be called with init=True")

        self.co2 = dampen_variability(co2, tau, self.co2)
        self.temp = dampen_variability(temp, tau, self.temp)
        self.vpd = dampen_variability(forcing.vpd, tau, self.vpd)
        self.patm = dampen_variability(forcing.P_air, tau, self.patm)
        logger.debug("Environmental memory: co2=%.2f ppm, temp=%.2f degC, vpd=%.1f Pa, patm=%.1f Pa", self.co2, self.temp, self.vpd, self.patm)


@define
class OptimalityPhotosynthesis:
    """
    Acclimated-optimality (P-model) photosynthesis closure of the canopy flux driver. Gross
    production and leaf respiration are derived per unit crown area from the light use efficiency
    and the acclimated Vcmax25 of the optimality solver. Stomatal water limitation is not modelled.
    """
    method = "pmodel"

    ## Module dependencies
    Solver: Callable = field(factory=PModel)   ## Optimality solver, called with (kphio, beta, ppfd, co2, tc, vpd, patm, c4, method_optci, method_jmaxlim)
    params: GPPParams = field(factory=GPPParams)   ## Model-wide photosynthesis parameters

    method_optci: str = field(default="prentice14")   ## Method for the optimal ci:ca ratio
    method_jmaxlim: str = field(default="wang17")     ## Method for the Jmax limitation
    temp_min: float = field(default=-5.0)   ## Smoothed temperature at or below which photosynthesis is off (degC)

    def new_memory(self):
        return EnvironmentalMemory()

    def prepare_timestep(self, forcing, cohorts, init, memory):
        memory.update(forcing, init, self.params.tau_acclim)

    def is_active(self, forcing, memory):
        return memory.temp > self.temp_min and forcing.PAR > 0.0

    def calculate_cohort(self, forcing, cohort, sp, f_light, fapar_tree, step_seconds, memory=None):
        """
        Calculates the fluxes of one cohort with leaves.

        Parameters
        ----------
        forcing: ClimateForcing
        cohort: Cohort
        sp: SpeciesParams
            Parameters of the cohort's species
        f_light: float
            Fraction of top-of-canopy light incident on the cohort's layer (-)
        fapar_tree: float
            Fractional light absorption of an individual crown (-)
        step_seconds: float
            Timestep duration (s)
        memory: EnvironmentalMemory
            Environmental memory, already updated for this timestep

        Returns
        -------
        CohortFluxes
        """
        if not self.is_active(forcing, memory):
            return CohortFluxes()

        par = forcing.compute_par_flux(f_light)
        out_pmodel = self.Solver(
            kphio=sp.kphio,
            beta=self.params.beta,
            ppfd=par,
            co2=memory.co2,
            tc=memory.temp,
            vpd=memory.vpd,
            patm=memory.patm,
            c4=sp.pt == PT_C4,
            method_optci=self.method_optci,
            method_jmaxlim=self.method_jmaxlim,
        )

        # Quantities per unit crown area: gpp in g C m-2 s-1, dark respiration in mol C m-2 s-1
        gpp = par*fapar_tree*out_pmodel.lue
        rd = fapar_tree*out_pmodel.vcmax25*self.params.rd_to_vcmax*ftemp_inst_rd(forcing.TairC)
        return CohortFluxes.from_ground_rates(cohort, step_seconds, gpp, rd)
