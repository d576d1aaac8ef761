"""
Climate forcing class: Holds the atmospheric forcing of a single simulation timestep and its humidity conversions
"""

import numpy as np
from attrs import frozen, field
from canopyflux.biophysics_funcs import esat

@frozen
class ClimateForcing:
    """
    One timestep of atmospheric forcing. Immutable, supplied once per timestep.
    """

    radiation: float = field()  ## Downward shortwave radiation at the top of the canopy (W m-2)
    Tair: float = field()   ## Air temperature (K)
    RH: float = field()     ## Relative humidity (fraction, 0-1)
    P_air: float = field(default=101325.0)   ## Surface air pressure (Pa)
    CO2: float = field(default=400.0e-6)   ## Ambient CO2 mole fraction (mol CO2 mol-1 dry air)
    PAR: float = field(default=None)  ## Photosynthetically active radiation (umol m-2 s-1). If not given it is derived from radiation.
    vpd: float = field(default=None)  ## Vapor pressure deficit (Pa). If not given it is derived from Tair and RH.

    ## Unit conversion factors
    T_K0: float = 273.15    ## conversion factor for degrees Celsius to Kelvin
    T_freeze: float = 273.16    ## freezing point of water (K)
    kfFEC: float = 2.04     ## conversion factor of shortwave irradiance to PAR photon flux (umol J-1)

    ## Constants
    mol_h2o: float = 18.0e-3    ## molar mass of water vapor (kg mol-1)
    mol_air: float = 28.96e-3   ## molar mass of dry air (kg mol-1)

    def __attrs_post_init__(self):
        # Derived inputs are filled once so that the instance stays immutable afterwards
        if self.PAR is None:
            object.__setattr__(self, "PAR", self.radiation * self.kfFEC)
        if self.vpd is None:
            object.__setattr__(self, "vpd", self.compute_VPD(self.Tair - self.T_K0, self.RH))

    @property
    def TairC(self):
        """Air temperature, degrees Celsius"""
        return self.Tair - self.T_K0

    def compute_sat_vapor_pressure(self,T):
        """
        Computes the saturation vapor pressure using Tetens' formula

        T = air temperature (degC)
        e_s = saturation vapor pressure of water (Pa)
        """
        return esat(T)

    def compute_VPD(self,T,RH):
        """
        Computes the vapor pressure deficit.

        Parameters
        ----------
        T : scalar or ndarray
            Array containing air temperature (degC).
        RH : scalar or ndarray
            Array containing relative humidity (fraction).

        Returns
        -------
        VPD : scalar or ndarray (see dtype of parameters)
            Array of vapor pressure deficit (Pa)
        """
        e_s = self.compute_sat_vapor_pressure(T)
        e_a = e_s * RH
        return np.maximum(e_s - e_a, 0.0)

    def compute_specific_humidity(self):
        """
        Computes the specific humidity of the canopy air space from relative humidity.

        Returns
        -------
        q : float
            Specific humidity (kg kg-1)
        """
        e_s = self.compute_sat_vapor_pressure(self.Tair - self.T_freeze)
        return (e_s * self.RH * self.mol_h2o) / (self.P_air * self.mol_air)

    def compute_par_flux(self, f_light=1.0):
        """
        Photosynthetic photon flux density received at a canopy layer.

        Parameters
        ----------
        f_light : float
            Fraction of top-of-canopy light reaching the layer (-)

        Returns
        -------
        ppfd : float
            Photon flux density (mol m-2 s-1)
        """
        return f_light * self.radiation * self.kfFEC * 1.0e-6
