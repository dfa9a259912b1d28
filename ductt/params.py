# ductt/params.py
import math

# Sine wave layout: each actuator group gets
#   amplitude, angular frequency, phase change, dc offset
N_PARAMS = 4

# Structure: 2 clusters of 4 strings (#1 = vertical, #2 = saddle), then 2 prisms
N_CLUSTERS          = 2
MUSCLES_PER_CLUSTER = 4
N_PRISMS            = 2
N_ACTIONS           = N_CLUSTERS + N_PRISMS

# Two trailing genes: ignore-touch flag and hysteresis duration
N_AUX_PARAMS = 2
N_TOTAL_PARAMS = N_PARAMS * N_ACTIONS + N_AUX_PARAMS  # 18

# Ranges per channel (amplitude, frequency [Hz], phase change [rad], offset)
PARAM_MINS  = (0.0, 0.3, -math.pi, 0.0)
PARAM_MAXES = (40.0, 20.0, math.pi, 40.0)  # frequency capped at 20 Hz

# Touch sensor gating
IGNORE_TOUCH_THRESHOLD = 0.5
HYSTERESIS_MIN = 0.0
HYSTERESIS_MAX = 2.0
DEFAULT_IGNORE_TOUCH = True
DEFAULT_HYSTERESIS_SECONDS = 0.5
TICKS_PER_SECOND = 1000  # physics runs at 1 kHz

# Episode timing
SETTLE_SECONDS = 3.0     # robot is left alone to settle before actuation
SETUP_DT = 0.0001

# Manual parameter noise (params live in [0,1], so this is +/- 0.5%)
MANUAL_NOISE = 0.005
MANUAL_DEFAULT = 1.0

# Impedance controller gains (offset tension, length stiffness, velocity stiffness)
IMPEDANCE_GAINS = (1000.0, 500.0, 10.0)

# Sentinel fitness for runs flagged as bad
BAD_RUN_DISPLACEMENT = -1.0

# --- Evolution defaults (overridden by the config file) ---
POP_SIZE    = 16
SIGMA_INIT  = 0.25
HIDDEN_SIZE = 8
SEED        = 42

# --- Tracking (W&B) ---
ENTITY = "ductt"
PROJECT = "ductt-learning"
CONFIG = {
    "Clusters": N_CLUSTERS,
    "Prisms": N_PRISMS,
    "Population Size": POP_SIZE,
    "Initial Sigma": SIGMA_INIT,
}
