# Users module
