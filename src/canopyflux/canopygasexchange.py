"""
Canopy gas exchange model class: Per-timestep light partitioning and photosynthesis of all cohorts of a vegetation tile
"""

import logging
from typing import Callable
from attrs import define, field
from canopyflux.canopylayers import CanopyLayers
from canopyflux.cohort import CohortFluxes, SpeciesTable
from canopyflux.leafgasexchange import LeuningPhotosynthesis
from canopyflux.optimality import OptimalityPhotosynthesis
from canopyflux.params import SimulationConfig, GPPParams, METHOD_LEUNING, METHOD_PMODEL

logger = logging.getLogger(__name__)

@define
class CanopyGasExchange:
    """
    Calculator of cohort-level gross primary production, leaf respiration and transpiration.

    The photosynthesis closure is selected once for the whole run. Per timestep, light is
    partitioned over the canopy layers, the closure prepares its per-timestep state (soil water
    supply or environmental memory), and then every cohort is calculated independently and its
    flux fields are written.
    """

    ## Module dependencies
    Photosynthesis: Callable = field(factory=OptimalityPhotosynthesis)    ## Photosynthesis closure (LeuningPhotosynthesis or OptimalityPhotosynthesis)
    Canopy: Callable = field(factory=CanopyLayers)     ## Canopy light partitioning
    Species: SpeciesTable = field(factory=SpeciesTable)    ## Species parameter lookup

    step_seconds: float = field(default=86400.0)   ## Timestep duration (s)
    debug_lue_override: bool = field(default=False)    ## Replace gpp with a fixed light use efficiency (debugging only)
    lue_fix: float = field(default=1.0e-9)    ## Light use efficiency of the debug override (kg C J-1)
    resl_fix_frac: float = field(default=0.1)     ## Leaf respiration as a fraction of gpp in the debug override (-)

    @classmethod
    def from_config(cls, config: SimulationConfig, species: SpeciesTable, params: GPPParams = None, **kwargs):
        """
        Creates the calculator with the photosynthesis closure named in the run configuration.

        Parameters
        ----------
        config: SimulationConfig
            Run-wide configuration
        species: SpeciesTable
            Species parameter lookup
        params: GPPParams, optional
            Model-wide photosynthesis parameters, defaults are used if not given
        kwargs:
            Further arguments passed to the photosynthesis closure (e.g. WaterSupply or Solver)

        Returns
        -------
        CanopyGasExchange
        """
        if config.method_photosynth == METHOD_LEUNING:
            closure = LeuningPhotosynthesis(**kwargs)
        elif config.method_photosynth == METHOD_PMODEL:
            closure = OptimalityPhotosynthesis(params=params if params is not None else GPPParams(), **kwargs)
        else:
            raise ValueError(f"Error: Chosen photosynthesis method, {config.method_photosynth}, not available")

        if config.debug_lue_override:
            logger.warning("Debug light use efficiency override is enabled, gpp and resl will not be physically derived")
        return cls(Photosynthesis=closure, Species=species, step_seconds=config.step_seconds, debug_lue_override=config.debug_lue_override)

    def new_memory(self):
        """
        Creates the environmental memory the closure needs, or None if it keeps no memory.
        """
        return self.Photosynthesis.new_memory()

    def calculate(self, forcing, cohorts, init, memory=None):
        """
        Calculates the fluxes of all cohorts for one timestep and writes them onto the cohorts.

        Parameters
        ----------
        forcing: ClimateForcing
            Forcing of the current timestep
        cohorts: sequence of Cohort
            Cohorts of the vegetation tile. Only their flux fields are modified.
        init: bool
            True on the first timestep of the run
        memory: EnvironmentalMemory, optional
            Environmental memory of the site, required by the acclimated-optimality closure

        Returns
        -------
        light: LayerLight
            Light partitioning of this timestep
        """
        if memory is None and self.Photosynthesis.method == METHOD_PMODEL:
            raise ValueError("An EnvironmentalMemory must be passed to calculate when using the pmodel photosynthesis method")

        light = self.Canopy.calculate(cohorts)
        self.Photosynthesis.prepare_timestep(forcing, cohorts, init, memory)
        logger.debug("Calculating %s photosynthesis for %d cohorts", self.Photosynthesis.method, len(cohorts))

        for i, cc in enumerate(cohorts):
            if cc.has_leaves:
                f_light = light.light_fraction(self.Canopy.index_layer(cc.layer))
                sp = self.Species[cc.species]
                fluxes = self.Photosynthesis.calculate_cohort(forcing, cc, sp, f_light, light.fapar_tree[i], self.step_seconds, memory)
                if self.debug_lue_override:
                    fluxes = self.fixed_lue_fluxes(fluxes, forcing, cc, f_light, light.fapar_tree[i])
            else:
                # No leaves means no photosynthesis and no stomatal conductance either
                fluxes = CohortFluxes()
            cc.set_fluxes(fluxes)

        return light

    def fixed_lue_fluxes(self, fluxes, forcing, cohort, f_light, fapar_tree):
        """
        Replaces gpp and resl with a fixed light use efficiency applied to the light absorbed by the crown.
        """
        rad_top = f_light*forcing.radiation
        gpp = self.lue_fix*rad_top*cohort.crownarea*fapar_tree*self.step_seconds
        return CohortFluxes(
            An_op=fluxes.An_op,
            An_cl=fluxes.An_cl,
            w_scale=fluxes.w_scale,
            transp=fluxes.transp,
            gpp=gpp,
            resl=gpp*self.resl_fix_frac,
        )

    def canopy_totals(self, cohorts):
        """
        Sums cohort fluxes to totals per unit ground area.

        Returns
        -------
        dict
            "gpp" and "resl" (kg C m-2 timestep-1), "transp" (kg H2O m-2 timestep-1)
        """
        return {
            "gpp": sum(cc.gpp*cc.nindivs for cc in cohorts),
            "resl": sum(cc.resl*cc.nindivs for cc in cohorts),
            "transp": sum(cc.transp*cc.nindivs for cc in cohorts),
        }
