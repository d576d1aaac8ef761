"""
P-model class: Default least-cost optimality solver for light use efficiency and acclimated Vcmax25
"""

import numpy as np
from attrs import define, frozen, field
from canopyflux.biophysics_funcs import ftemp_inst_vcmax

@frozen
class PModelOutput:
    """
    Acclimated photosynthesis variables returned by the optimality solver.
    """
    lue: float      ## Light use efficiency (g C mol-1 photons)
    vcmax25: float  ## Maximum carboxylation capacity normalised to 25oC (mol CO2 m-2 s-1)
    vcmax: float    ## Maximum carboxylation capacity at the growth temperature (mol CO2 m-2 s-1)
    chi: float      ## Ratio of leaf-internal to ambient CO2 partial pressure (-)
    ci: float       ## Leaf-internal CO2 partial pressure (Pa)
    gammastar: float    ## Photorespiratory CO2 compensation point (Pa)
    kmm: float      ## Michaelis-Menten coefficient of Rubisco-limited assimilation (Pa)

@define
class PModel:
    """
    Calculator of acclimated photosynthesis following the P-model. Vcmax and Jmax acclimate such
    that the summed costs of maintaining carboxylation and transpiration are minimal.

    References
    ----------
    Prentice et al. (2014, doi:10.1111/ele.12211); Wang et al. (2017, doi:10.1038/nplants.2017.116);
    Stocker et al. (2020, doi:10.5194/gmd-13-1545-2020)
    """

    ## Bernacchi et al. (2001) kinetic constants at 25oC
    gs25_0: float = field(default=4.332)     ## Photorespiratory compensation point at 25oC (Pa)
    dha_gs: float = field(default=37830.0)   ## activation energy of the compensation point (J mol-1)
    kc25: float = field(default=39.97)   ## Michaelis-Menten constant for CO2 at 25oC (Pa)
    dhac: float = field(default=79430.0)     ## activation energy of Kc (J mol-1)
    ko25: float = field(default=27480.0)     ## Michaelis-Menten constant for O2 at 25oC (Pa)
    dhao: float = field(default=36380.0)     ## activation energy of Ko (J mol-1)

    ## Constants
    wang17_c: float = field(default=0.41)    ## Unit carbon cost for the maintenance of electron transport capacity (-)
    c_molmass: float = field(default=12.0107)    ## molar mass of carbon (g mol-1)
    patm_ref: float = field(default=101325.0)    ## standard atmospheric pressure (Pa)
    co2_o2: float = field(default=209476.0)  ## O2 mole fraction of the standard atmosphere (ppm)
    Rgas: float = field(default=8.3145)  ## universal gas constant (J mol-1 K-1)
    T_ref: float = field(default=25.0)   ## reference temperature (degC)

    def __call__(self, kphio, beta, ppfd, co2, tc, vpd, patm, c4=False, method_optci="prentice14", method_jmaxlim="wang17"):
        return self.calculate(kphio, beta, ppfd, co2, tc, vpd, patm, c4, method_optci, method_jmaxlim)

    def calculate(
        self,
        kphio,   ## Quantum yield efficiency (-)
        beta,    ## Unit cost of carboxylation (-)
        ppfd,    ## Absorbed photosynthetic photon flux density (mol m-2 s-1)
        co2,     ## Atmospheric CO2 concentration (ppm)
        tc,      ## Air temperature (degC)
        vpd,     ## Vapor pressure deficit (Pa)
        patm,    ## Atmospheric pressure (Pa)
        c4=False,    ## C4 photosynthesis pathway
        method_optci="prentice14",   ## Method for the optimal ci:ca ratio
        method_jmaxlim="wang17",     ## Method for the Jmax limitation
    ) -> PModelOutput:
        if method_optci != "prentice14":
            raise ValueError(f"Error: Chosen method_optci, {method_optci}, is not available")

        ca = self.co2_to_ca(co2, patm)
        gammastar = self.calc_gammastar(tc, patm)
        kmm = self.calc_kmm(tc, patm)
        ns_star = self.calc_viscosity_h2o(tc)/self.calc_viscosity_h2o(self.T_ref)
        vpd = max(0.0, vpd)

        if c4:
            # CO2 concentrating mechanism, assimilation is not CO2 limited
            chi = 1.0
            ci = ca
            mj = 1.0
            mjoc = 1.0
        else:
            xi = np.sqrt(beta*(kmm + gammastar)/(1.6*ns_star))
            chi = gammastar/ca + (1.0 - gammastar/ca)*xi/(xi + np.sqrt(vpd))
            ci = chi*ca
            mj = (ci - gammastar)/(ci + 2.0*gammastar)
            mjoc = (ci + kmm)/(ci + 2.0*gammastar)

        f_v = self.jmax_limitation(mj, method_jmaxlim)

        lue = kphio*mj*f_v*self.c_molmass
        vcmax = kphio*ppfd*mjoc*f_v
        vcmax25 = vcmax/ftemp_inst_vcmax(tc)
        return PModelOutput(lue=lue, vcmax25=vcmax25, vcmax=vcmax, chi=chi, ci=ci, gammastar=gammastar, kmm=kmm)

    def jmax_limitation(self, mj, method):
        """
        Limitation factor of carboxylation by the cost of maintaining electron transport capacity.

        Parameters
        ----------
        mj : float
            CO2 limitation factor of light-limited assimilation (-)
        method : str
            "wang17" (Wang et al., 2017) or "none" (no limitation)

        Returns
        -------
        f_v : float
            Limitation factor (-). NaN where mj does not exceed the electron transport cost.
        """
        if method == "wang17":
            if mj <= self.wang17_c:
                return np.nan
            return np.sqrt(1.0 - (self.wang17_c/mj)**(2.0/3.0))
        elif method == "none":
            return 1.0
        else:
            raise ValueError(f"Error: Chosen method_jmaxlim, {method}, is not available")

    def co2_to_ca(self, co2, patm):
        """Converts CO2 concentration (ppm) to partial pressure (Pa)"""
        return 1.0e-6*co2*patm

    def arrhenius(self, tc, ha):
        tk = tc + 273.15
        tkref = self.T_ref + 273.15
        return np.exp(ha*(tk - tkref)/(tkref*self.Rgas*tk))

    def calc_gammastar(self, tc, patm):
        """Photorespiratory CO2 compensation point (Pa)"""
        return self.gs25_0*patm/self.patm_ref*self.arrhenius(tc, self.dha_gs)

    def calc_kmm(self, tc, patm):
        """Michaelis-Menten coefficient of Rubisco-limited assimilation (Pa)"""
        kc = self.kc25*self.arrhenius(tc, self.dhac)
        ko = self.ko25*self.arrhenius(tc, self.dhao)
        po = self.co2_o2*1.0e-6*patm
        return kc*(1.0 + po/ko)

    def calc_viscosity_h2o(self, tc):
        """
        Viscosity of water (Pa s) from the simplified Vogel-type equation, a temperature-only
        approximation of the Huber et al. (2009) formulation that omits the dependence on water density.
        """
        return 1.0e-3*np.exp(-3.719 + 580.0/((tc + 273.0) - 138.0))
