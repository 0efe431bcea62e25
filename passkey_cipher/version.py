"""PassKey Cipher Meta information.
   PassKey Cipher encrypts short text payloads with keys derived from a
   passkey authenticator PRF output.
"""
__title__ = 'passkey_cipher'
__description__ = (
   'PassKey Cipher encrypts text into portable envelopes using keys '
   'derived from a passkey authenticator PRF.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
