cloudflare_cache_headers = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': '*',
    'Cache-Control': 'no-cache, no-store, must-revalidate',
    'Pragma': 'no-cache',
    'Expires': '0',
    'Surrogate-Control': 'no-store'
}

stremio_headers = {
    'connection': 'keep-alive',
    'user-agent': 'Mozilla/5.0 (Windows NT 6.2; WOW64) AppleWebKit/537.36 (KHTML, like Gecko) QtWebEngine/5.15.2 Chrome/83.0.4103.122 Safari/537.36 StremioShell/4.4.168',
    'accept': 'application/json',
    'origin': 'https://app.strem.io',
}

# Query keys that switch on premium-resolution (debrid) mode, in tag priority order
debrid_params = {
    'ad': 'AD',  # AllDebrid
    'rd': 'RD',  # Real-Debrid
    'pm': 'PM',  # Premiumize
    'tb': 'TB',  # TorBox
    'oc': 'OC',  # Offcloud
}

addon_name = 'AutoStream'
