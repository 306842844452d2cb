# Income module
