"""
Biophysics helper functions used across more than one canopyflux module
"""

import numpy as np

def fT_arrhenius_ref(k_ref, T_k, E_a, T_ref=298.2, R=8.314):
    """
    Applies an Arrhenius-type temperature scaling function referenced to T_ref.

    Parameters
    ----------
    k_ref: float
        Rate constant at the reference temperature

    T_k: float
        Temperature, K

    E_a: float
        Activation energy, J mol-1

    T_ref: float
        Reference temperature, K

    Returns
    -------
    Temperature adjusted rate constant at the given temperature.

    References
    ----------
    Weng et al. (2015, doi:10.5194/bg-12-2655-2015)
    """
    return k_ref * np.exp(E_a/R * (1.0/T_ref - 1.0/T_k))

def fT_logistic_envelope(T_k, T_freeze=273.16, T_low=5.0, T_high=45.0, slope=0.4):
    """
    Dampening factor (0-1) that shuts down leaf metabolism at cold and hot leaf temperatures.

    Two logistic terms are centred at T_low and T_high degrees above freezing. The
    returned value multiplies a rate, i.e. rate/((1+exp(..))*(1+exp(..))).

    Parameters
    ----------
    T_k: float
        Leaf temperature, K

    Returns
    -------
    Temperature envelope scaling factor, unitless
    """
    return 1.0/((1.0 + np.exp(slope*(T_low - T_k + T_freeze))) * (1.0 + np.exp(slope*(T_k - T_high - T_freeze))))

def esat(T):
    """
    Saturation vapor pressure over water using the Tetens/Magnus formula

    T = temperature (degC)
    e_s = saturation vapor pressure (Pa)
    """
    return 610.78 * np.exp(17.27*T/(T + 237.3))

def qsat(T_k, p_surf, T_freeze=273.16):
    """
    Saturated specific humidity at a given temperature and pressure.

    Parameters
    ----------
    T_k: float
        Temperature, K

    p_surf: float
        Surface air pressure, Pa

    Returns
    -------
    q_s: float
        Saturated specific humidity, kg kg-1
    """
    e_s = esat(T_k - T_freeze)
    return 0.622*e_s/(p_surf - 0.378*e_s)

def ftemp_inst_rd(tc):
    """
    Instantaneous temperature response of leaf dark respiration, normalised to 25oC.

    Parameters
    ----------
    tc: float
        Temperature, degrees Celsius

    Returns
    -------
    Scaling factor, unitless

    References
    ----------
    Heskel et al. (2016, doi:10.1073/pnas.1520282113)
    """
    apar = 0.1012
    bpar = 0.0005
    return np.exp(apar*(tc - 25.0) - bpar*(tc**2 - 25.0**2))

def ftemp_inst_vcmax(tc, tcgrowth=None):
    """
    Instantaneous peaked Arrhenius temperature response of Vcmax, normalised to 25oC.

    Parameters
    ----------
    tc: float
        Temperature, degrees Celsius

    tcgrowth: float
        Growth temperature, degrees Celsius. Defaults to tc.

    Returns
    -------
    Scaling factor, unitless

    References
    ----------
    Kattge and Knorr (2007, doi:10.1111/j.1365-3040.2007.01690.x)
    """
    if tcgrowth is None:
        tcgrowth = tc
    Ha = 71513.0    # activation energy, J mol-1
    Hd = 200000.0   # deactivation energy, J mol-1
    a_ent = 668.39  # entropy offset, J mol-1 K-1
    b_ent = -1.07   # entropy slope, J mol-1 K-2
    R = 8.3145
    tkref = 298.15
    tk = tc + 273.15
    dent = a_ent + b_ent*tcgrowth
    fva = np.exp(Ha*(tk - tkref)/(tkref*R*tk))
    fvb = (1.0 + np.exp((tkref*dent - Hd)/(R*tkref))) / (1.0 + np.exp((tk*dent - Hd)/(R*tk)))
    return fva*fvb

def dampen_variability(var, tau, memory):
    """
    Relaxes a memory state toward the current value of a variable using a first-order
    exponential filter with time constant tau.

    Parameters
    ----------
    var: float or array_like
        Current value of the variable

    tau: float
        Time constant, in units of the calling timestep (e.g. days for a daily step)

    memory: float or array_like
        Current value of the memory state

    Returns
    -------
    Updated memory state. A memory already equal to var is returned unchanged.
    """
    return memory + (var - memory) * (1.0 - np.exp(-1.0/tau))
