class VariableFeature:
    # static
    OBJECTIVE = 0
    IS_TYPE_BINARY = 1
    IS_TYPE_INTEGER = 2
    IS_TYPE_IMPLICIT_INTEGER = 3
    IS_TYPE_CONTINUOUS = 4
    # dynamic
    HAS_LOWER_BOUND = 5
    HAS_UPPER_BOUND = 6
    NORMED_REDUCED_COST = 7
    SOLUTION_VALUE = 8
    SOLUTION_FRAC = 9
    IS_SOLUTION_AT_LOWER_BOUND = 10
    IS_SOLUTION_AT_UPPER_BOUND = 11
    SCALED_AGE = 12
    INCUMBENT_VALUE = 13
    AVERAGE_INCUMBENT_VALUE = 14
    IS_BASIS_LOWER = 15
    IS_BASIS_BASIC = 16
    IS_BASIS_UPPER = 17
    IS_BASIS_ZERO = 18
    INDEX = 19


class RowFeature:
    # static
    BIAS = 0
    OBJECTIVE_COSINE_SIMILARITY = 1
    # dynamic
    IS_TIGHT = 2
    DUAL_SOLUTION_VALUE = 3
    SCALED_AGE = 4


N_STATIC_VARIABLE_FEATURES = 5
N_DYNAMIC_VARIABLE_FEATURES = 15
N_VARIABLE_FEATURES = N_STATIC_VARIABLE_FEATURES + N_DYNAMIC_VARIABLE_FEATURES

N_STATIC_ROW_FEATURES = 2
N_DYNAMIC_ROW_FEATURES = 3
N_ROW_FEATURES = N_STATIC_ROW_FEATURES + N_DYNAMIC_ROW_FEATURES

# Column ranges refreshed on every call vs. kept from the cache.
STATIC_VARIABLE_SLICE = slice(0, N_STATIC_VARIABLE_FEATURES)
DYNAMIC_VARIABLE_SLICE = slice(N_STATIC_VARIABLE_FEATURES, N_VARIABLE_FEATURES)
STATIC_ROW_SLICE = slice(0, N_STATIC_ROW_FEATURES)
DYNAMIC_ROW_SLICE = slice(N_STATIC_ROW_FEATURES, N_ROW_FEATURES)

VARIABLE_TYPE_FEATURES = {
    "BINARY": VariableFeature.IS_TYPE_BINARY,
    "INTEGER": VariableFeature.IS_TYPE_INTEGER,
    "IMPLINT": VariableFeature.IS_TYPE_IMPLICIT_INTEGER,
    "CONTINUOUS": VariableFeature.IS_TYPE_CONTINUOUS,
}

BASIS_STATUS_FEATURES = {
    "lower": VariableFeature.IS_BASIS_LOWER,
    "basic": VariableFeature.IS_BASIS_BASIC,
    "upper": VariableFeature.IS_BASIS_UPPER,
    "zero": VariableFeature.IS_BASIS_ZERO,
}
