"""
Leaf gas exchange model class: Conductance-limited photosynthesis, respiration and transpiration of a cohort canopy
"""

import numpy as np
from typing import Tuple, Callable, Optional
from attrs import define, field
from canopyflux.biophysics_funcs import fT_arrhenius_ref, fT_logistic_envelope, qsat
from canopyflux.cohort import CohortFluxes, PT_C4, mol_C, mol_h2o, mol_air

@define
class LeafGasExchangeLeuning:
    """
    Calculator of canopy-average leaf gas exchange following the Leuning-type conductance closure of
    LM3-PPA/BiomeE. The canopy of a cohort is split at the leaf area depth where light-limited and
    Rubisco-limited gross photosynthesis are equal.

    All outputs are per unit leaf area.

    References
    ----------
    Leuning (1995, doi:10.1111/j.1365-3040.1995.tb00370.x); Weng et al. (2015, doi:10.5194/bg-12-2655-2015)
    """

    ## Stomatal conductance constants
    b: float = field(default=0.01)   ## Minimum stomatal conductance (mol m-2 s-1)
    gs_lim: float = field(default=0.25)  ## Maximum stomatal conductance to water vapor (mol m-2 s-1)
    gs_h2o_co2: float = field(default=1.56)  ## Ratio of conductance to water vapor and to CO2 (-)
    light_crit: float = field(default=0.0)   ## Light threshold for photosynthesis (mol m-2 s-1)

    ## Biochemical constants
    Kc_ref: float = field(default=0.000404)  ## Michaelis-Menten constant for CO2 at 298.2 K and sea level pressure (mol mol-1)
    Ko_ref: float = field(default=0.248)     ## Michaelis-Menten constant for O2 at 298.2 K and sea level pressure (mol mol-1)
    Kc_Ea: float = field(default=59356.0)    ## activation energy of Kc (J mol-1)
    Ko_Ea: float = field(default=35948.0)    ## activation energy of Ko (J mol-1)
    Vmax_Ea: float = field(default=24920.0)  ## activation energy of Vmax and leaf respiration (J mol-1)
    O2: float = field(default=0.209)     ## O2 mole fraction (mol mol-1)
    C4_ci_coef: float = field(default=18000.0)  ## CO2-limited rate coefficient of C4 photosynthesis (mol m-2 s-1 per unit ci)

    ## Constants
    rad_phot: float = field(default=4.6e-6)  ## Conversion factor of shortwave to PAR photon flux (mol J-1), McCree
    Rgas: float = field(default=8.314)   ## universal gas constant (J mol-1 K-1)
    p_sea: float = field(default=1.0e5)  ## sea level pressure (Pa)
    T_freeze: float = field(default=273.16)  ## freezing point of water (K)
    seconds_per_year: float = field(default=365.0*86400.0)   ## seconds per year (s)

    def calculate(
        self,
        rad_top,   ## Downward radiation at the top of the cohort's layer, W m-2
        rad_net,   ## Net radiation absorbed at the top of the cohort's layer, W m-2
        tl,        ## Leaf temperature, K
        ea,        ## Specific humidity in the canopy air space, kg kg-1
        lai,       ## Leaf area index within the crown, m2 m-2
        p_surf,    ## Surface pressure, Pa
        ws,        ## Water supply, mol H2O m-2 leaf s-1
        sp,        ## Species parameters (SpeciesParams)
        ca,        ## CO2 mole fraction in the canopy air space, mol mol-1
        kappa,     ## Canopy light extinction coefficient (-)
        leaf_wet,  ## Fraction of leaves that is wet or snow-covered (-)
    ) -> Tuple[float]:
        """
        Returns
        -------
        apot: float
            Net photosynthesis, mol C m-2 leaf s-1
        acl: float
            Leaf respiration as a negative flux, mol C m-2 leaf s-1
        w_scale: float
            Water stress diagnostic, ratio of water supply to demand capped at 1 (-)
        transp: float
            Transpiration, mol H2O m-2 leaf s-1
        gs: float
            Stomatal conductance, m s-1
        """
        light_top = rad_top*self.rad_phot
        par_net = rad_net*self.rad_phot

        # Humidity deficit, kg/kg
        ds = max(qsat(tl, p_surf, self.T_freeze) - ea, 0.0)

        kc, ko, vm, capgam = self.biochemical_parameters(tl, p_surf, sp.Vmax)
        ftemp = fT_logistic_envelope(tl, self.T_freeze)
        Resp = self.leaf_respiration(tl, lai, sp) * ftemp

        # Ignore the difference in CO2 concentration between leaf surface and canopy air (rb = 0)
        anbar = -Resp/lai
        gsbar = self.b
        if light_top > self.light_crit:
            coef0 = (1 + ds/sp.do1)/sp.m_cond
            ci = (ca + 1.6*coef0*capgam)/(1 + 1.6*coef0)
            if ci > capgam:
                if sp.pt == PT_C4:
                    Ag_l, Ag_rb = self.gross_assimilation_C4(light_top, par_net, ci, vm, lai, kappa, sp.alpha_phot)
                else:
                    Ag_l, Ag_rb = self.gross_assimilation_C3(light_top, par_net, ci, capgam, kc, ko, vm, lai, kappa, sp.alpha_phot)
                Ag = (Ag_l + Ag_rb)*ftemp
                anbar = (Ag - Resp)/lai
                if anbar > 0.0:
                    gsbar = anbar/(ci - capgam)/coef0

        an_w, gs_w = self.wet_leaf_downregulation(anbar, gsbar, sp.wet_leaf_dreg, leaf_wet)

        if gs_w > self.gs_lim:
            if an_w > 0.0:
                an_w = an_w*self.gs_lim/gs_w
            gs_w = self.gs_lim

        an_w, gs_w, w_scale, transp = self.water_limitation(an_w, gs_w, ds, ws)

        # Convert stomatal conductance from mol m-2 s-1 to m s-1 with the volume of a mole of gas
        gs = gs_w*self.Rgas*tl/p_surf
        return (an_w, -Resp/lai, w_scale, transp, gs)

    def biochemical_parameters(self, tl, p_surf, Vmax):
        """
        Temperature and pressure scaled Michaelis-Menten constants, maximum carboxylation rate and
        CO2 compensation point.

        Returns
        -------
        (kc, ko, vm, capgam): tuple of floats
            kc and ko in mol mol-1, vm in mol m-2 s-1, capgam in mol mol-1
        """
        ko = fT_arrhenius_ref(self.Ko_ref, tl, self.Ko_Ea, R=self.Rgas)*self.p_sea/p_surf
        kc = fT_arrhenius_ref(self.Kc_ref, tl, self.Kc_Ea, R=self.Rgas)*self.p_sea/p_surf
        vm = fT_arrhenius_ref(Vmax, tl, self.Vmax_Ea, R=self.Rgas)
        # Farquhar & Caemmerer (1982)
        capgam = 0.5*kc/ko*0.21*self.O2
        return kc, ko, vm, capgam

    def leaf_respiration(self, tl, lai, sp):
        """
        Dark respiration of the whole crown from leaf nitrogen, before the cold/heat envelope is applied.

        Returns
        -------
        Resp: float
            Respiration, mol C m-2 crown s-1
        """
        basal = sp.gamma_LN/self.seconds_per_year * sp.LNA * lai / mol_C
        return fT_arrhenius_ref(basal, tl, self.Vmax_Ea, R=self.Rgas)

    def equilibrium_lai(self, arg, kappa, lai):
        """
        Leaf area depth at which light-limited and Rubisco-limited rates are equal, limited to [0, lai].
        """
        lai_eq = -np.log(arg)/kappa
        return min(max(0.0, lai_eq), lai)

    def light_profile_fraction(self, lai_eq, lai, kappa):
        """Fraction of the crown's absorbed light that is absorbed below the leaf area depth lai_eq"""
        return (np.exp(-lai_eq*kappa) - np.exp(-lai*kappa))/(1.0 - np.exp(-lai*kappa))

    def gross_assimilation_C3(self, light_top, par_net, ci, capgam, kc, ko, vm, lai, kappa, alpha_phot):
        """
        Light-limited and Rubisco-limited gross assimilation of a C3 crown.

        Returns
        -------
        (Ag_l, Ag_rb): tuple of floats
            Gross assimilation of the light-limited and Rubisco-limited parts of the crown, mol C m-2 s-1
        """
        coef1 = kc*(1.0 + self.O2/ko)
        f2 = vm*(ci - capgam)/(ci + coef1)
        f3 = vm/2.0
        dum2 = min(f2, f3)

        lai_eq = self.equilibrium_lai(dum2*(ci + 2.0*capgam)/(ci - capgam)/(alpha_phot*light_top*kappa), kappa, lai)
        Ag_l = alpha_phot*(ci - capgam)/(ci + 2.0*capgam)*par_net*self.light_profile_fraction(lai_eq, lai, kappa)
        Ag_rb = dum2*lai_eq
        return Ag_l, Ag_rb

    def gross_assimilation_C4(self, light_top, par_net, ci, vm, lai, kappa, alpha_phot):
        """
        Light-limited and capacity-limited gross assimilation of a C4 crown.

        Returns
        -------
        (Ag_l, Ag_rb): tuple of floats
            Gross assimilation of the light-limited and capacity-limited parts of the crown, mol C m-2 s-1
        """
        dum2 = min(vm, self.C4_ci_coef*vm*ci)

        lai_eq = self.equilibrium_lai(dum2/(kappa*alpha_phot*light_top), kappa, lai)
        Ag_l = alpha_phot*par_net*self.light_profile_fraction(lai_eq, lai, kappa)
        Ag_rb = dum2*lai_eq
        return Ag_l, Ag_rb

    def wet_leaf_downregulation(self, anbar, gsbar, wet_leaf_dreg, leaf_wet):
        """
        Reduces positive net assimilation and converts conductance to water vapor, both scaled
        down for wet or snow-covered leaves.

        Returns
        -------
        (an_w, gs_w): tuple of floats
            Net assimilation (mol C m-2 s-1) and conductance to water vapor (mol m-2 s-1)
        """
        dreg = 1.0 - wet_leaf_dreg*leaf_wet
        an_w = anbar*dreg if anbar > 0.0 else anbar
        gs_w = self.gs_h2o_co2*gsbar*dreg
        return an_w, gs_w

    def water_limitation(self, an_w, gs_w, ds, ws):
        """
        Limits conductance and net assimilation by the water supply.

        Parameters
        ----------
        an_w: float
            Net assimilation, mol C m-2 s-1
        gs_w: float
            Stomatal conductance to water vapor, mol m-2 s-1
        ds: float
            Humidity deficit, kg kg-1
        ws: float
            Water supply, mol H2O m-2 s-1

        Returns
        -------
        (an_w, gs_w, w_scale, transp): tuple of floats
        """
        # mol_air/mol_h2o converts the humidity deficit to mol H2O mol-1 air
        Ed = gs_w*ds*mol_air/mol_h2o

        if Ed > ws:
            w = ws/Ed
            gs_w = w*gs_w
            if an_w > 0.0:
                an_w = an_w*w
            if an_w < 0.0 and gs_w > self.b:
                gs_w = self.b

        transp = min(ws, Ed)
        w_scale = min(1.0, ws/Ed) if Ed > 0.0 else 1.0
        return an_w, gs_w, w_scale, transp


@define
class LeuningPhotosynthesis:
    """
    Conductance-limited photosynthesis closure of the canopy flux driver.
    """
    method = "gs_leuning"

    ## Module dependencies
    Leaf: Callable = field(factory=LeafGasExchangeLeuning)    ## Leaf gas exchange calculator
    WaterSupply: Optional[Callable] = field(default=None)     ## Soil water collaborator, called with the cohorts to fill W_supply before any cohort is calculated. If None, W_supply is assumed to be up to date.

    rad_net_frac: float = field(default=0.9)   ## Fraction of downward radiation absorbed by the canopy (-)

    def new_memory(self):
        return None

    def prepare_timestep(self, forcing, cohorts, init, memory):
        if self.WaterSupply is not None:
            self.WaterSupply(cohorts)

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
        memory: EnvironmentalMemory, optional
            Not used by this closure

        Returns
        -------
        CohortFluxes
        """
        rad_top = f_light*forcing.radiation
        rad_net = rad_top*self.rad_net_frac
        cana_q = forcing.compute_specific_humidity()

        # Water supply per unit leaf area and second
        water_supply = cohort.W_supply/(cohort.leafarea*step_seconds*mol_h2o)

        psyn, resp, w_scale, transp, gs = self.Leaf.calculate(
            rad_top, rad_net, forcing.Tair, cana_q, cohort.lai,
            forcing.P_air, water_supply, sp,
            forcing.CO2, cohort.extinct, cohort.leaf_wet,
        )
        return CohortFluxes.from_leaf_rates(cohort, step_seconds, psyn, resp, w_scale, transp)
