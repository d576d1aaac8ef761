"""
Model parameters and simulation configuration: model-wide photosynthesis parameters and run-wide switches
"""

import json
import logging
from attrs import frozen, field, fields, validators

logger = logging.getLogger(__name__)

## Names of the photosynthesis closures that can be selected for a run
METHOD_LEUNING = "gs_leuning"
METHOD_PMODEL = "pmodel"
PHOTOSYNTHESIS_METHODS = (METHOD_LEUNING, METHOD_PMODEL)

@frozen
class GPPParams:
    """
    Model-wide photosynthesis parameters, loaded once before the first timestep
    and read-only thereafter.
    """
    beta: float = field(default=146.0, validator=validators.gt(0))  ## Unit cost of carboxylation (-)
    rd_to_vcmax: float = field(default=0.014, validator=validators.ge(0))   ## Ratio of Rdark to Vcmax25 (-), Atkin et al. (2015) for C3 herbaceous
    tau_acclim: float = field(default=30.0, validator=validators.gt(0))   ## Acclimation time scale of photosynthesis (d)
    soilm_par_a: float = field(default=1.0)    ## Soil moisture stress shape parameter a (-), carried for parameter file compatibility, not used in the flux calculations
    soilm_par_b: float = field(default=0.0)    ## Soil moisture stress shape parameter b (-), carried for parameter file compatibility, not used in the flux calculations
    tau_acclim_tempstress: float = field(default=20.0, validator=validators.gt(0))  ## Temperature stress time scale (d), carried for parameter file compatibility, not used in the flux calculations
    par_shape_tempstress: float = field(default=0.0)   ## Temperature stress shape parameter (-), carried for parameter file compatibility, not used in the flux calculations

@frozen
class SimulationConfig:
    """
    Run-wide switches. The photosynthesis method is validated here so that an unsupported
    method stops the run before any timestep is calculated.
    """
    method_photosynth: str = field(default=METHOD_PMODEL, validator=validators.in_(PHOTOSYNTHESIS_METHODS))  ## Photosynthesis closure used for the whole run
    step_seconds: float = field(default=86400.0, validator=validators.gt(0))  ## Timestep duration (s)
    debug_lue_override: bool = field(default=False, validator=validators.instance_of(bool))  ## Replace gpp with a fixed light use efficiency (debugging only)

def load_params(filename=None, **overrides):
    """
    Populates the model-wide photosynthesis parameters.

    Parameters
    ----------
    filename: str or path-like, optional
        JSON file holding a flat object of parameter names and values
    overrides: float
        Individual parameter values, applied after those from the file

    Returns
    -------
    GPPParams

    Raises
    ------
    ValueError
        If a parameter name is not recognised or a value is outside its valid range
    """
    values = {}
    if filename is not None:
        with open(filename) as f:
            values.update(json.load(f))
    values.update(overrides)

    known = {a.name for a in fields(GPPParams)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown photosynthesis parameter(s): {', '.join(unknown)}")

    params = GPPParams(**values)
    logger.info("Loaded photosynthesis parameters: %s", params)
    return params
