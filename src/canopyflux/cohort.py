"""
Cohort class: Includes the cohort state consumed by the canopy flux calculations, species parameters and flux unit conversions
"""

from typing import Dict
from attrs import define, frozen, field, validators

## Leaf phenological status
LEAF_OFF = 0
LEAF_ON = 1

## Physiological type
PT_C3 = 0
PT_C4 = 1

## Water stress diagnostic written when stomatal water limitation is not modelled
W_SCALE_INAPPLICABLE = -9999.0

## Constants
mol_C = 12.0e-3     ## molar mass of carbon (kg mol-1)
c_molmass = 12.0107     ## molar mass of carbon (g mol-1)
mol_h2o = 18.0e-3   ## molar mass of water (kg mol-1)
mol_air = 28.96e-3  ## molar mass of dry air (kg mol-1)


@frozen
class SpeciesParams:
    """
    Physiological constants of one species/plant functional type. Read-only.
    """
    pt: int = field(default=PT_C3, validator=validators.in_((PT_C3, PT_C4)))  ## Physiological type (C3 or C4)
    Vmax: float = field(default=35.0e-6)   ## Maximum carboxylation rate at 25oC (mol CO2 m-2 s-1)
    m_cond: float = field(default=7.0)     ## Stomatal conductance slope parameter (-)
    alpha_phot: float = field(default=0.06)    ## Photosynthesis efficiency (quantum yield, mol CO2 mol-1 photons)
    kphio: float = field(default=0.05)     ## Quantum yield efficiency of the optimality closure (-)
    wet_leaf_dreg: float = field(default=0.3)  ## Wet leaf photosynthesis down-regulation coefficient (-)
    gamma_LN: float = field(default=70.5)      ## Leaf respiration coefficient (kg C kg-1 N yr-1)
    LNA: float = field(default=1.2e-3)         ## Area-based leaf nitrogen content (kg N m-2)
    do1: float = field(default=0.09)   ## Reference humidity deficit of the conductance model (kg kg-1). LM3-PPA uses 0.15 for its functional types 0 and 1 and 0.09 for all others


@define
class SpeciesTable:
    """
    Lookup of species parameters by species id.
    """
    species: Dict[int, SpeciesParams] = field(factory=dict)

    def __getitem__(self, species_id):
        try:
            return self.species[species_id]
        except KeyError:
            raise KeyError(f"Species id {species_id} is not defined in the species table") from None

    def __len__(self):
        return len(self.species)


@define
class Cohort:
    """
    A group of structurally identical individual trees. Structural fields are read by the
    canopy flux calculations, flux fields are written by them.
    """

    ## Structural state
    leafarea: float = field(default=0.0)    ## Leaf area per individual (m2)
    crownarea: float = field(default=1.0)   ## Crown area per individual (m2)
    nindivs: float = field(default=1.0)     ## Number of individuals per unit ground area (m-2)
    layer: int = field(default=1)   ## Canopy layer, 1 = top
    species: int = field(default=0)     ## Species id
    status: int = field(default=LEAF_ON)    ## Leaf phenological status
    W_supply: float = field(default=0.0)    ## Water supply from the soil (kg H2O individual-1 timestep-1)
    extinct: float = field(default=0.75)    ## Light extinction coefficient within the crown (-)
    leaf_wet: float = field(default=0.0)    ## Wet or snow-covered fraction of leaves (-)

    ## Fluxes
    An_op: float = field(default=0.0)   ## Net photosynthesis (mol C m-2 leaf s-1)
    An_cl: float = field(default=0.0)   ## Leaf respiration (mol C m-2 leaf s-1)
    w_scale: float = field(default=W_SCALE_INAPPLICABLE)  ## Water stress diagnostic (-)
    transp: float = field(default=0.0)  ## Transpiration (kg H2O individual-1 timestep-1)
    gpp: float = field(default=0.0)     ## Gross primary production (kg C individual-1 timestep-1)
    resl: float = field(default=0.0)    ## Leaf respiration (kg C individual-1 timestep-1)

    @property
    def lai(self):
        """Leaf area index within the crown (m2 m-2)"""
        if self.crownarea > 0:
            return self.leafarea / self.crownarea
        return 0.0

    @property
    def has_leaves(self):
        """Leaves are on and displayed over a crown of non-zero area"""
        return self.status == LEAF_ON and self.leafarea > 0.0 and self.crownarea > 0.0

    def set_fluxes(self, fluxes):
        self.An_op = fluxes.An_op
        self.An_cl = fluxes.An_cl
        self.w_scale = fluxes.w_scale
        self.transp = fluxes.transp
        self.gpp = fluxes.gpp
        self.resl = fluxes.resl


@frozen
class CohortFluxes:
    """
    Flux outputs of one cohort for one timestep, in the units persisted on the cohort.
    """
    An_op: float = 0.0
    An_cl: float = 0.0
    w_scale: float = W_SCALE_INAPPLICABLE
    transp: float = 0.0
    gpp: float = 0.0
    resl: float = 0.0

    @classmethod
    def from_leaf_rates(cls, cohort, step_seconds, psyn, resp, w_scale, transp):
        """
        Converts per unit leaf area rates to whole-individual amounts per timestep.

        Parameters
        ----------
        cohort: Cohort
            Cohort the rates belong to
        step_seconds: float
            Timestep duration (s)
        psyn: float
            Net photosynthesis (mol C m-2 leaf s-1)
        resp: float
            Leaf respiration as a negative flux (mol C m-2 leaf s-1)
        w_scale: float
            Water stress diagnostic (-)
        transp: float
            Transpiration (mol H2O m-2 leaf s-1)

        Returns
        -------
        CohortFluxes
        """
        leaf_seconds = cohort.leafarea * step_seconds
        return cls(
            An_op=psyn,
            An_cl=-resp,
            w_scale=w_scale,
            transp=transp * mol_h2o * leaf_seconds,
            gpp=(psyn - resp) * mol_C * leaf_seconds,
            resl=-resp * mol_C * leaf_seconds,
        )

    @classmethod
    def from_ground_rates(cls, cohort, step_seconds, gpp, rd):
        """
        Converts rates per unit crown (ground) area to whole-individual amounts per timestep.

        Parameters
        ----------
        cohort: Cohort
            Cohort the rates belong to
        step_seconds: float
            Timestep duration (s)
        gpp: float
            Gross primary production (g C m-2 s-1)
        rd: float
            Leaf dark respiration (mol C m-2 s-1)

        Returns
        -------
        CohortFluxes
        """
        crown_seconds = cohort.crownarea * step_seconds
        return cls(
            gpp=gpp * crown_seconds * 1.0e-3,
            resl=rd * crown_seconds * c_molmass * 1.0e-3,
        )
